"""Entry points tying the resolver, compiler and serializer together."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from os import PathLike
from pathlib import Path

from ._compiler import compile_document
from ._github import GitHubTagLookup, TagLookup
from ._pinning import ActionResolver, LockFile
from ._workflow import Workflow
from ._yaml import render

logger: logging.Logger = logging.getLogger(__name__)


def resolve_actions(
    references: Iterable[str],
    lock_file_path: str | PathLike[str] | None,
    *,
    allow_network_write: bool = False,
    tag_lookup: TagLookup | None = None,
    best_effort: bool = False,
) -> dict[str, str]:
    """Return the pinned references, updating the lock file when allowed

    With ``allow_network_write``, pins missing from the lock file are looked up
    and the lock file, if any, is rewritten once all references are resolved.
    Otherwise the lock file is only read, and without a lock file no pinning
    takes place at all.

    Raises:
        ResolutionError: if a reference cannot be pinned
        LockFileError: if the lock file is malformed
    """
    if lock_file_path is None and not allow_network_write:
        logger.debug("No lock file given, action references are not pinned")
        return {}

    lock_file = None if lock_file_path is None else LockFile(lock_file_path)
    pins = {} if lock_file is None else lock_file.load()

    if allow_network_write and tag_lookup is None:
        tag_lookup = GitHubTagLookup.from_env()

    resolver = ActionResolver(
        pins,
        tag_lookup if allow_network_write else None,
        best_effort=best_effort,
    )
    resolved = resolver.resolve(references)

    if allow_network_write and lock_file is not None:
        lock_file.write(resolver.pins)

    return resolved


def compile_workflow(
    workflow: Workflow,
    *,
    output_path: str | PathLike[str] | None = None,
    lock_file_path: str | PathLike[str] | None = None,
    allow_network_write: bool = False,
    tag_lookup: TagLookup | None = None,
    best_effort: bool = False,
) -> str | Path:
    """Compile a workflow to GitHub Actions YAML

    Args:
        workflow: the workflow to compile
        output_path: where to write the YAML; it is returned instead when None
        lock_file_path: the lock file pinning action references; without it,
            references are written as they are
        allow_network_write: look up tags missing from the lock file and
            rewrite the lock file
        tag_lookup: lists repository tags, GitHub is used when None
        best_effort: leave references without a matching tag unpinned

    Returns:
        the YAML text, or the path written to
    """
    resolved = resolve_actions(
        workflow.action_references(),
        lock_file_path,
        allow_network_write=allow_network_write,
        tag_lookup=tag_lookup,
        best_effort=best_effort,
    )
    text = render(compile_document(workflow, resolved))

    if output_path is None:
        return text
    return _write(Path(output_path), text)


def compile_workflows(
    workflows: Mapping[str, Workflow],
    *,
    output_dir: str | PathLike[str] | None = None,
    lock_file_path: str | PathLike[str] | None = None,
    allow_network_write: bool = False,
    tag_lookup: TagLookup | None = None,
    best_effort: bool = False,
) -> dict[str, str] | dict[str, Path]:
    """Compile several workflows, keyed by output file name

    The action references of all workflows are resolved in one pass and the
    lock file is written once, before any workflow is compiled.

    Returns:
        the YAML text of each workflow, or the paths written to when
        ``output_dir`` is given
    """
    references = [
        reference
        for workflow in workflows.values()
        for reference in workflow.action_references()
    ]
    resolved = resolve_actions(
        references,
        lock_file_path,
        allow_network_write=allow_network_write,
        tag_lookup=tag_lookup,
        best_effort=best_effort,
    )

    texts = {
        file_name: render(compile_document(workflow, resolved))
        for file_name, workflow in workflows.items()
    }

    if output_dir is None:
        return texts
    return {
        file_name: _write(Path(output_dir) / file_name, text)
        for file_name, text in texts.items()
    }


def _write(path: Path, text: str) -> Path:
    path.parent.mkdir(exist_ok=True, parents=True)
    path.write_text(text, encoding="utf-8")
    logger.info("Wrote %s", path)
    return path
