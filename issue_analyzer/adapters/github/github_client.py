from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

import requests

logger = logging.getLogger(__name__)


class GitHubApiError(RuntimeError):
    pass


def resolve_token(environ: Mapping[str, str], token_env_var: str, token_file_env_var: str) -> str:
    """Read the token from the environment, or from the file it points to."""
    token = environ.get(token_env_var, "").strip()
    if not token:
        token_file = environ.get(token_file_env_var, "").strip()
        if not token_file:
            raise RuntimeError(f"Neither {token_env_var} nor {token_file_env_var} is set")
        try:
            token = Path(token_file).expanduser().read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise RuntimeError(f"Error reading token file {token_file}: {exc}") from exc
    if not token:
        raise RuntimeError("GitHub token is empty")
    return token


@dataclass
class GitHubClient:
    token: str
    api_base_url: str = "https://api.github.com"
    user_agent: str = "issue-analyzer"
    timeout_s: float = 60.0

    def _headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": self.user_agent,
            # Sub-issue fields are behind a feature flag.
            "GraphQL-Features": "sub_issues",
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def graphql(self, query: str, variables: dict[str, Any] | None = None) -> Any:
        url = self.api_base_url.rstrip("/") + "/graphql"
        payload = {"query": query, "variables": variables or {}}
        while True:
            resp = requests.post(url, headers=self._headers(), json=payload, timeout=self.timeout_s)
            if resp.status_code == 403 and "rate limit" in resp.text.lower():
                reset = resp.headers.get("X-RateLimit-Reset")
                if reset:
                    wait_s = max(1, int(reset) - int(time.time()) + 1)
                    logger.warning("GitHub rate limit hit. Sleeping %ss", wait_s)
                    time.sleep(wait_s)
                    continue
            if resp.status_code >= 400:
                raise GitHubApiError(f"GraphQL failed: {resp.status_code} {resp.text}")
            data = resp.json()
            if data.get("errors"):
                raise GitHubApiError(f"GraphQL errors: {data['errors'][0].get('message', data['errors'])}")
            return data.get("data")
