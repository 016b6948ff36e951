"""GraphQL documents for Projects v2 items and sub-issues."""

from __future__ import annotations

_ISSUE_FIELDS = """
    number
    title
    state
    stateReason
    author { login }
    labels(first: 100) { nodes { name } }
    assignees(first: 10) { nodes { login } }
    url
    repository { name owner { login } }
    createdAt
    closedAt
"""

_FIELD_VALUES = """
    nodes {
      __typename
      ... on ProjectV2ItemFieldNumberValue {
        field { ... on ProjectV2FieldCommon { name } }
        number
      }
      ... on ProjectV2ItemFieldTextValue {
        field { ... on ProjectV2FieldCommon { name } }
        text
      }
      ... on ProjectV2ItemFieldDateValue {
        field { ... on ProjectV2FieldCommon { name } }
        date
      }
      ... on ProjectV2ItemFieldSingleSelectValue {
        field { ... on ProjectV2FieldCommon { name } }
        name
      }
    }
"""

PROJECT_ITEMS_QUERY = f"""
query ProjectIssues($org: String!, $projectNum: Int!, $cursor: String) {{
  organization(login: $org) {{
    projectV2(number: $projectNum) {{
      title
      items(first: 100, after: $cursor) {{
        pageInfo {{ hasNextPage endCursor }}
        nodes {{
          content {{
            __typename
            ... on Issue {{
              {_ISSUE_FIELDS}
              parent {{ id url }}
            }}
          }}
          fieldValues(first: 100) {{
            {_FIELD_VALUES}
          }}
        }}
      }}
    }}
  }}
}}
"""

SUB_ISSUES_QUERY = f"""
query GetSubIssues($owner: String!, $repo: String!, $issueNumber: Int!, $cursor: String) {{
  repository(owner: $owner, name: $repo) {{
    issue(number: $issueNumber) {{
      title
      subIssues(first: 100, after: $cursor) {{
        pageInfo {{ hasNextPage endCursor }}
        nodes {{
          id
          {_ISSUE_FIELDS}
          projectItems(first: 10) {{
            nodes {{
              project {{ title number }}
              fieldValues(first: 50) {{
                {_FIELD_VALUES}
              }}
            }}
          }}
        }}
      }}
    }}
  }}
}}
"""

PARENT_QUERY = """
query RootCheck($owner: String!, $name: String!, $number: Int!) {
  repository(owner: $owner, name: $name) {
    issue(number: $number) {
      id
      number
      title
      url
      parent { id number title url }
    }
  }
}
"""
