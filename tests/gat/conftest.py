from __future__ import annotations

from collections.abc import Iterable, Mapping

import pytest

from gat import Tag
from gat._errors import TransientNetworkError

CHECKOUT_V4 = "b4ffde65f46336ab88eb53be808477a3936bae11"
CHECKOUT_V3 = "f43a0e5ff2bd294095638e18286ca9a3d1956744"
SETUP_PYTHON_V5 = "0a5c61591373683505ea898e09a3ea4f39ef2b9c"
CODEQL_V3 = "e2b3eafc8d227b0241d48be5f425d47c2d750a13"


class FakeTagLookup:
    """Serves tags from memory and records every lookup"""

    def __init__(self, tags: Mapping[str, list[Tag]], failing: Iterable[str] = ()):
        self._tags = tags
        self._failing = set(failing)
        self.calls = list[tuple[str, str]]()

    def tags(self, owner: str, repo: str) -> list[Tag]:
        self.calls.append((owner, repo))
        if f"{owner}/{repo}" in self._failing:
            raise TransientNetworkError(f"GET {owner}/{repo} failed: HTTP 502")
        return self._tags.get(f"{owner}/{repo}", [])


@pytest.fixture
def tag_lookup() -> FakeTagLookup:
    return FakeTagLookup(
        {
            "actions/checkout": [
                Tag("v4.1.1", CHECKOUT_V4),
                Tag("v4", CHECKOUT_V4),
                Tag("v3", CHECKOUT_V3),
            ],
            "actions/setup-python": [Tag("v5", SETUP_PYTHON_V5)],
            "github/codeql-action": [Tag("v3", CODEQL_V3)],
        }
    )
