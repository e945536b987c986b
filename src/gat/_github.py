"""Tag lookups against the GitHub REST API."""

from __future__ import annotations

import logging
import os
import time
from collections.abc import Iterable, Iterator, Mapping
from typing import NamedTuple, Protocol

import requests

from ._errors import TagLookupError, TransientNetworkError

logger: logging.Logger = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"

_RETRYABLE_STATUS = frozenset({403, 429, 500, 502, 503, 504})


class Tag(NamedTuple):
    """A tag of a repository and the commit it points to."""

    #: The tag name, e.g. ``v4.1.1``.
    name: str
    #: The full commit SHA.
    commit_sha: str


class TagLookup(Protocol):
    """Lists the tags of a repository."""

    def tags(self, owner: str, repo: str) -> Iterable[Tag]:
        """Return the tags of ``owner/repo`` in the order the remote lists them.

        Raises:
            TagLookupError: if the remote could not be queried
        """
        ...


class GitHubTagLookup:
    """Lists repository tags through ``GET /repos/{owner}/{repo}/tags``.

    Pages are fetched lazily, so a caller that stops iterating once it has
    found its tag does not download the remaining pages.
    """

    def __init__(
        self,
        token: str | None = None,
        *,
        api_url: str = GITHUB_API_URL,
        timeout: float = 10,
        retries: int = 3,
        backoff: float = 1.0,
        session: requests.Session | None = None,
    ):
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.retries = retries
        self.backoff = backoff
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
            }
        )
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> GitHubTagLookup:
        """Create a lookup configured from ``GITHUB_TOKEN`` and ``GAT_*`` variables."""
        environ = os.environ if environ is None else environ
        return cls(
            environ.get("GITHUB_TOKEN") or None,
            api_url=environ.get("GAT_GITHUB_API_URL", GITHUB_API_URL),
            timeout=float(environ.get("GAT_REQUEST_TIMEOUT", "10")),
            retries=int(environ.get("GAT_REQUEST_RETRIES", "3")),
        )

    def tags(self, owner: str, repo: str) -> Iterator[Tag]:
        url: str | None = f"{self.api_url}/repos/{owner}/{repo}/tags"
        params: dict[str, object] | None = {"per_page": 100}
        while url is not None:
            response = self._get(url, params)
            if response.status_code == 404:
                logger.debug("Repository %s/%s not found", owner, repo)
                return
            if not response.ok:
                raise TagLookupError(
                    f"Listing tags of {owner}/{repo} failed:"
                    f" HTTP {response.status_code} {response.text}"
                )
            try:
                page = [
                    Tag(tag["name"], tag["commit"]["sha"]) for tag in response.json()
                ]
            except (ValueError, KeyError, TypeError) as error:
                raise TagLookupError(
                    f"Listing tags of {owner}/{repo} returned an unexpected reply:"
                    f" {error!r}"
                ) from error
            yield from page
            # The next link already carries the query string.
            url = response.links.get("next", {}).get("url")
            params = None

    def _get(self, url: str, params: dict[str, object] | None) -> requests.Response:
        """Send a GET request, retrying request failures, rate limits and 5xx.

        Raises:
            TransientNetworkError: once the retries are used up
        """
        attempt = 0
        while True:
            logger.debug("GET - %s", url)
            try:
                response = self.session.get(url, params=params, timeout=self.timeout)
            except requests.RequestException as error:
                reason = str(error)
            else:
                if response.status_code not in _RETRYABLE_STATUS or (
                    response.status_code == 403 and not _is_rate_limited(response)
                ):
                    return response
                reason = f"HTTP {response.status_code}"

            if attempt >= self.retries:
                logger.debug("Maximum retries reached: %s", self.retries)
                raise TransientNetworkError(f"GET {url} failed: {reason}")
            attempt += 1
            delay = self.backoff * attempt
            logger.warning(
                "GET %s failed (%s), retrying in %.1fs (%d/%d)",
                url,
                reason,
                delay,
                attempt,
                self.retries,
            )
            time.sleep(delay)


def _is_rate_limited(response: requests.Response) -> bool:
    return (
        response.headers.get("X-RateLimit-Remaining") == "0"
        or "Retry-After" in response.headers
    )
