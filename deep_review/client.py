"""GitHub and Jira REST API clients.

Usage:
    gh = GitHubClient(token="ghp_xxx")
    comments = gh.list_issue_comments("octo", "repo", 42)

    jira = JiraClient(url="https://example.atlassian.net", token="xxx")
    account_id = jira.find_account_id("dev@example.com")
    key = jira.create_issue(payload)

Both share :class:`RestClient`, which owns the requests session and maps
transport failures and HTTP error codes to the exceptions below. Tests
replace the transport with the ``requests_mock`` fixture.
"""

from typing import Any

import requests

GITHUB_PAGE_SIZE = 100


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class ApiClientError(Exception):
    """Base exception for all client errors."""


class AuthenticationError(ApiClientError):
    """Raised on HTTP 401/403: invalid, expired or under-scoped token."""


class NotFoundError(ApiClientError):
    """Raised on HTTP 404: repository, pull request or resource not found."""


class NetworkError(ApiClientError):
    """Raised on connection timeout or unreachable server."""


class JiraClientError(ApiClientError):
    """Raised when Jira answers with something we cannot use."""


class TicketCreationError(JiraClientError):
    """Raised when Jira does not confirm issue creation with HTTP 201."""


# ---------------------------------------------------------------------------
# Base client
# ---------------------------------------------------------------------------

class RestClient:
    """Thin wrapper around a JSON REST API."""

    service_name = "API"

    def __init__(self, url: str, timeout: int = 30,
                 session: requests.Session | None = None) -> None:
        self.base_url = url.rstrip("/")
        self._timeout = timeout
        self._session = session or requests.Session()
        self._session.headers["Accept"] = "application/json"

    def get(self, endpoint: str, params: dict[str, Any] | None = None) -> Any:
        """Perform a GET request and return the parsed JSON response.

        Raises:
            AuthenticationError: HTTP 401 / 403
            NotFoundError:       HTTP 404
            ApiClientError:      Any other non-2xx response
            NetworkError:        Timeout or connection failure
        """
        return self._check(self._send("GET", endpoint, params=params or {})).json()

    def post(self, endpoint: str, payload: Any) -> Any:
        """POST *payload* as JSON and return the parsed response (or None)."""
        response = self._check(self._send("POST", endpoint, json=payload))
        return response.json() if response.content else None

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _url(self, endpoint: str) -> str:
        if endpoint.startswith(("http://", "https://")):
            return endpoint
        return f"{self.base_url}{endpoint}"

    def _send(self, method: str, endpoint: str, **kwargs: Any) -> requests.Response:
        url = self._url(endpoint)
        try:
            return self._session.request(method, url, timeout=self._timeout, **kwargs)
        except requests.exceptions.Timeout as exc:
            raise NetworkError(
                f"Request timed out after {self._timeout}s while contacting '{url}'"
            ) from exc
        except requests.exceptions.ConnectionError as exc:
            raise NetworkError(
                f"Unable to reach {self.service_name} server at '{self.base_url}'"
            ) from exc

    def _check(self, response: requests.Response) -> requests.Response:
        url = response.url
        if response.status_code in (401, 403):
            raise AuthenticationError(
                f"{self.service_name} rejected the credentials (HTTP {response.status_code}); "
                "check that your token is valid and has the required scopes."
            )
        if response.status_code == 404:
            raise NotFoundError(f"Resource not found: {url}")
        if not response.ok:
            raise ApiClientError(
                f"Unexpected response {response.status_code} from {url}: {response.text[:200]}"
            )
        return response


# ---------------------------------------------------------------------------
# GitHub
# ---------------------------------------------------------------------------

class GitHubClient(RestClient):
    """Source-host operations needed by the review workflow."""

    service_name = "GitHub"

    def __init__(self, token: str, url: str = "https://api.github.com",
                 timeout: int = 30, session: requests.Session | None = None) -> None:
        super().__init__(url, timeout=timeout, session=session)
        self._session.headers.update({
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {token}",
            "X-GitHub-Api-Version": "2022-11-28",
        })

    def get_paginated(self, endpoint: str, params: dict[str, Any] | None = None) -> list[dict]:
        """Fetch every page of a list endpoint and return a flat list.

        GitHub paginates with ``per_page``/``page`` and advertises the next
        page in the ``Link`` header; we follow it until it disappears.
        """
        results: list[dict] = []
        response = self._check(self._send(
            "GET", endpoint, params={**(params or {}), "per_page": GITHUB_PAGE_SIZE},
        ))
        while True:
            page = response.json()
            if not isinstance(page, list):
                raise ApiClientError(f"Expected a JSON array from {response.url}")
            results.extend(page)

            next_url = response.links.get("next", {}).get("url")
            if not next_url or not page:
                break
            response = self._check(self._send("GET", next_url))

        return results

    def list_issue_comments(self, owner: str, repo: str, number: int) -> list[dict]:
        return self.get_paginated(f"/repos/{owner}/{repo}/issues/{number}/comments")

    def request_reviewers(self, owner: str, repo: str, number: int,
                          reviewers: list[str]) -> dict:
        return self.post(
            f"/repos/{owner}/{repo}/pulls/{number}/requested_reviewers",
            {"reviewers": reviewers},
        )


# ---------------------------------------------------------------------------
# Jira
# ---------------------------------------------------------------------------

class JiraClient(RestClient):
    """Jira Cloud REST v3 operations used to file the review ticket."""

    service_name = "Jira"

    def __init__(self, url: str, token: str, timeout: int = 30,
                 session: requests.Session | None = None) -> None:
        super().__init__(url, timeout=timeout, session=session)
        # Jira auth: token as username, empty password
        self._session.auth = (token, "")

    def find_account_id(self, query: str) -> str:
        """Return the accountId of the first user matching *query* (an email)."""
        users = self.get("/rest/api/3/user/search", {"query": query})
        first = users[0] if isinstance(users, list) and users else {}
        account_id = first.get("accountId") if isinstance(first, dict) else None
        if not account_id:
            raise JiraClientError("Failed to get JIRA account ID")
        return account_id

    def create_issue(self, payload: dict) -> str:
        """Create an issue and return its key.

        Only HTTP 201 counts as success; any other status raises
        TicketCreationError carrying the response body.
        """
        response = self._send("POST", "/rest/api/3/issue", json=payload)
        if response.status_code != 201:
            raise TicketCreationError(f"Failed to create JIRA ticket: {response.text}")
        return response.json()["key"]
