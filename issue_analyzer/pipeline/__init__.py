"""End-to-end analysis of a project board's issue families.

This package provides:
- Analyzer configuration (TOML or environment variables)
- A runner that lists roots, builds families and summarizes them
- The JSON-serializable report handed to renderers

A run works on one snapshot of the board and keeps no state afterwards.
"""
