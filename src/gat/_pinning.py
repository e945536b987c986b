"""Pinning of action references to immutable commits.

A tag such as ``actions/checkout@v4`` can be moved to another commit after a
workflow has been reviewed. Every reference is therefore rewritten to the
commit the tag pointed to when it was first resolved, and that decision is
kept in a lock file so that later builds reproduce it without asking the
network again.
"""

from __future__ import annotations

import json
import logging
import os
import re
import stat
import tempfile
from collections.abc import Iterable, Mapping
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from functools import partial
from os import PathLike
from pathlib import Path

from ._errors import (
    LockFileError,
    MissingLockEntry,
    ResolutionError,
    TagLookupError,
    UnresolvableReference,
)
from ._github import TagLookup

logger: logging.Logger = logging.getLogger(__name__)

_COMMIT_SHA = re.compile(r"[a-f0-9]{40}")

_NEW_LOCK_FILE_MODE = 0o644


@dataclass(frozen=True, slots=True)
class ActionReference:
    """A parsed ``repository@version`` action reference"""

    text: str
    repository: str
    version: str

    @classmethod
    def parse(cls, text: str) -> ActionReference | None:
        """Split at the last ``@``, or return None for references that are not pinnable

        Local (``./path``) and ``docker://`` references are not pinnable.
        """
        if text.startswith(("./", "docker://")):
            return None
        repository, sep, version = text.rpartition("@")
        if not sep or not repository or not version:
            return None
        if "/" not in repository:
            return None
        return cls(text, repository, version)

    @property
    def owner(self) -> str:
        return self.repository.split("/")[0]

    @property
    def repo(self) -> str:
        return self.repository.split("/")[1]

    @property
    def is_commit(self) -> bool:
        return _COMMIT_SHA.fullmatch(self.version) is not None

    def pinned(self, commit_sha: str) -> str:
        """Return the reference pointing at ``commit_sha``, keeping any subpath"""
        return f"{self.repository}@{commit_sha}"


class LockFile:
    """The persisted mapping from action references to pinned references"""

    def __init__(self, path: str | PathLike[str]):
        self.path = Path(path)

    def load(self) -> dict[str, str]:
        """Return the pins, or an empty mapping if there is no lock file yet

        Raises:
            LockFileError: if the file is not a JSON object of strings
        """
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.debug("No lock file at %s", self.path)
            return {}

        try:
            pins = json.loads(text)
        except json.JSONDecodeError as error:
            raise LockFileError(f"{self.path} is not valid JSON: {error}") from error

        if not isinstance(pins, dict) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in pins.items()
        ):
            raise LockFileError(
                f"{self.path} must hold an object mapping action references to strings"
            )
        return pins

    def write(self, pins: Mapping[str, str]):
        """Replace the lock file with ``pins``

        The content goes to a temporary file first, which is then moved over the
        lock file, so a reader never sees a partially written file. The lock
        file keeps its permissions.
        """
        text = json.dumps(dict(sorted(pins.items())), indent=2) + "\n"
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, temp_name = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as temp_file:
                temp_file.write(text)
            os.chmod(temp_name, self._mode())
            os.replace(temp_name, self.path)
        except BaseException:
            Path(temp_name).unlink(missing_ok=True)
            raise
        logger.debug("Wrote %d pins to %s", len(pins), self.path)

    def _mode(self) -> int:
        try:
            return stat.S_IMODE(self.path.stat().st_mode)
        except FileNotFoundError:
            return _NEW_LOCK_FILE_MODE


class ActionResolver:
    """Resolves action references to pinned references

    Args:
        pins: known resolutions, usually loaded from a :class:`LockFile`; new
            resolutions are added to it
        tag_lookup: lists repository tags; ``None`` forbids network access,
            so every reference must be a commit SHA or already pinned
        best_effort: leave references with no matching tag unpinned, with a
            warning, instead of failing
        max_workers: the number of tag lookups issued concurrently
    """

    def __init__(
        self,
        pins: dict[str, str] | None = None,
        tag_lookup: TagLookup | None = None,
        *,
        best_effort: bool = False,
        max_workers: int = 8,
    ):
        self.pins = {} if pins is None else pins
        self.tag_lookup = tag_lookup
        self.best_effort = best_effort
        self.max_workers = max_workers

    def resolve(self, references: Iterable[str]) -> dict[str, str]:
        """Return the pinned form of each distinct reference

        References that are not of the ``owner/repo@version`` form are left out.
        Every reference is looked up at most once; lookups run concurrently and
        all of them complete before any failure is raised.

        Raises:
            UnresolvableReference: if a version matches no tag of its repository
            MissingLockEntry: if network access is forbidden and a reference is
                neither a commit SHA nor already pinned
        """
        parsed = list[ActionReference]()
        for text in dict.fromkeys(references):
            reference = ActionReference.parse(text)
            if reference is None:
                logger.debug("Not pinning '%s'", text)
            else:
                parsed.append(reference)

        resolved = dict[str, str]()
        pending = list[ActionReference]()
        for reference in parsed:
            if reference.is_commit:
                resolved[reference.text] = reference.text
            elif reference.text in self.pins:
                resolved[reference.text] = self.pins[reference.text]
            else:
                pending.append(reference)

        errors = list[ResolutionError]()
        tag_lookup = self.tag_lookup
        if pending and tag_lookup is None:
            errors.extend(MissingLockEntry(reference.text) for reference in pending)
        elif pending:
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                outcomes = list(pool.map(partial(self._lookup, tag_lookup), pending))
            for reference, outcome in zip(pending, outcomes):
                if isinstance(outcome, ResolutionError):
                    errors.append(outcome)
                else:
                    logger.info("Pinned %s to %s", reference.text, outcome)
                    resolved[reference.text] = outcome

        self.pins.update(resolved)

        if self.best_effort:
            for error in errors:
                if isinstance(error, UnresolvableReference):
                    logger.warning("LEAVING ACTION UNPINNED: %s", error)
            errors = [e for e in errors if not isinstance(e, UnresolvableReference)]

        if errors:
            errors.sort(key=lambda error: error.reference)
            for error in errors[1:]:
                logger.error("%s", error)
            raise errors[0]

        return {
            reference.text: resolved[reference.text]
            for reference in parsed
            if reference.text in resolved
        }

    def _lookup(
        self, tag_lookup: TagLookup, reference: ActionReference
    ) -> str | ResolutionError:
        logger.debug(
            "Looking up tag %s of %s", reference.version, reference.repository
        )
        try:
            tag = next(
                (
                    tag
                    for tag in tag_lookup.tags(reference.owner, reference.repo)
                    if tag.name == reference.version
                ),
                None,
            )
        except TagLookupError as error:
            unresolvable = UnresolvableReference(
                reference.text, reference.repository, reference.version, str(error)
            )
            unresolvable.__cause__ = error
            return unresolvable
        if tag is None:
            return UnresolvableReference(
                reference.text, reference.repository, reference.version
            )
        return reference.pinned(tag.commit_sha)
