import argparse
import logging
import runpy
import sys
from collections.abc import Mapping, Sequence
from pathlib import Path

from ._build import compile_workflows
from ._errors import GatError
from ._workflow import Workflow

logger: logging.Logger = logging.getLogger("gat")

_DEFAULT_TEMPLATES = Path(".github", "templates")
_DEFAULT_WORKFLOWS = Path(".github", "workflows")
_DEFAULT_LOCK_FILE = Path(".github", "gat.lock.json")


def main(argv: Sequence[str] | None = None) -> int:
    """Process command line arguments"""

    parser = argparse.ArgumentParser(
        prog="gat", description="Write your GitHub Actions workflows in Python."
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Show debug logs"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    build = subparsers.add_parser(
        "build", help="Compile all templates into GitHub Actions workflows."
    )
    build.add_argument(
        "--templates",
        type=Path,
        default=_DEFAULT_TEMPLATES,
        help="Directory of *.py templates (default: %(default)s)",
    )
    build.add_argument(
        "--output",
        type=Path,
        default=_DEFAULT_WORKFLOWS,
        help="Directory the workflows are written to (default: %(default)s)",
    )
    build.add_argument(
        "--lock-file",
        type=Path,
        default=_DEFAULT_LOCK_FILE,
        help="Lock file pinning action references (default: %(default)s)",
    )
    build.add_argument(
        "--frozen",
        action="store_true",
        help="Only use pins from the lock file, never query GitHub or write the lock",
    )
    build.add_argument(
        "--check",
        action="store_true",
        help="Fail if the workflows on disk are not up to date, without writing",
    )
    build.add_argument(
        "--best-effort",
        action="store_true",
        help="Leave actions unpinned when no matching tag exists",
    )

    args = parser.parse_args(argv)

    if args.verbose:
        log_level = logging.DEBUG
        log_format = (
            "%(asctime)s [%(name)s:%(funcName)s:%(lineno)d] [%(levelname)s] %(message)s"
        )
    else:
        log_level = logging.INFO
        log_format = "[%(levelname)s] %(message)s"
    logging.basicConfig(format=log_format, level=log_level, force=True)

    try:
        return _run_build(args)
    except GatError as error:
        logger.error("%s", error)
        return 1


def _run_build(args: argparse.Namespace) -> int:
    workflows = load_templates(args.templates)
    if not workflows:
        logger.error("No templates found in %s", args.templates)
        return 1

    # --check must not touch the lock file either
    allow_network_write = not (args.frozen or args.check)
    written = compile_workflows(
        workflows,
        output_dir=None if args.check else args.output,
        lock_file_path=args.lock_file,
        allow_network_write=allow_network_write,
        best_effort=args.best_effort,
    )

    if args.check:
        return _check(args.output, written)  # type: ignore
    return 0


def _check(output: Path, texts: Mapping[str, str]) -> int:
    stale = [
        file_name
        for file_name, text in texts.items()
        if not (output / file_name).is_file()
        or (output / file_name).read_text(encoding="utf-8") != text
    ]
    for file_name in stale:
        logger.error("%s is out of date, run 'gat build'", output / file_name)
    return 1 if stale else 0


def load_templates(templates: Path) -> dict[str, Workflow]:
    """Run every template and return its workflows by output file name

    A template defines either ``workflow``, compiled to ``<template stem>.yml``,
    or ``WORKFLOWS``, a mapping of output file name to workflow.

    Raises:
        GatError: if a template defines neither
    """
    workflows = dict[str, Workflow]()
    for path in sorted(templates.glob("*.py")):
        if path.name.startswith("_"):
            continue
        logger.debug("Loading template %s", path)
        namespace = runpy.run_path(str(path), run_name=f"gat_template_{path.stem}")

        workflow = namespace.get("workflow")
        defined = namespace.get("WORKFLOWS")
        if isinstance(workflow, Workflow):
            found: Mapping[str, object] = {f"{path.stem}.yml": workflow}
        elif isinstance(defined, Mapping):
            found = defined
        else:
            raise GatError(
                f"Template {path} must define 'workflow = Workflow(...)'"
                " or a 'WORKFLOWS' mapping of file names to workflows"
            )

        for file_name, value in found.items():
            if not isinstance(value, Workflow):
                raise GatError(f"{path}: WORKFLOWS['{file_name}'] is not a Workflow")
            if file_name in workflows:
                raise GatError(f"{path}: more than one template writes {file_name}")
            workflows[file_name] = value

    return workflows


if __name__ == "__main__":
    sys.exit(main())
