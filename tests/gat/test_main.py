import json
import logging
from pathlib import Path

import pytest

from conftest import CHECKOUT_V4
from gat.__main__ import load_templates, main
from gat._errors import GatError

SIMPLE_TEMPLATE = """\
from gat import Workflow

workflow = Workflow("Simple").on("push").add_job("job1", {"steps": [{"run": "exit 0"}]})
"""

CHECKOUT_TEMPLATE = """\
from gat import Workflow

workflow = (
    Workflow("Checkout")
    .on("push")
    .add_job("job1", {"steps": [{"uses": "actions/checkout@v4"}]})
)
"""

MANY_TEMPLATE = """\
from gat import Workflow

WORKFLOWS = {
    f"{name}.yml": Workflow(name).on("push").add_job("job1", {"steps": ["exit 0"]})
    for name in ("lint", "test")
}
"""


@pytest.fixture(autouse=True)
def restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def project(tmp_path: Path) -> Path:
    templates = tmp_path / "templates"
    templates.mkdir()
    (templates / "simple.py").write_text(SIMPLE_TEMPLATE, encoding="utf-8")
    return tmp_path


def build(project: Path, *args: str) -> int:
    return main(
        [
            "build",
            "--templates",
            str(project / "templates"),
            "--output",
            str(project / "workflows"),
            "--lock-file",
            str(project / "gat.lock.json"),
            *args,
        ]
    )


def test_build_writes_workflows(project: Path):
    assert build(project) == 0

    text = (project / "workflows" / "simple.yml").read_text(encoding="utf-8")
    assert text.startswith("# Workflow automatically generated by gat\n")
    assert "name: Simple\n" in text
    assert json.loads((project / "gat.lock.json").read_text(encoding="utf-8")) == {}


def test_check_detects_stale_workflows(
    project: Path, capsys: pytest.CaptureFixture[str]
):
    assert build(project, "--check") == 1

    assert build(project) == 0
    assert build(project, "--check") == 0

    output = project / "workflows" / "simple.yml"
    output.write_text(output.read_text(encoding="utf-8") + "# edited\n", encoding="utf-8")
    assert build(project, "--check") == 1
    assert "simple.yml is out of date" in capsys.readouterr().err


def test_frozen_build_needs_lock_entries(
    project: Path, capsys: pytest.CaptureFixture[str]
):
    (project / "templates" / "checkout.py").write_text(
        CHECKOUT_TEMPLATE, encoding="utf-8"
    )
    (project / "gat.lock.json").write_text("{}", encoding="utf-8")

    assert build(project, "--frozen") == 1

    assert "'actions/checkout@v4' is not in the lock file" in capsys.readouterr().err
    assert (project / "gat.lock.json").read_text(encoding="utf-8") == "{}"
    assert not (project / "workflows").exists()


def test_frozen_build_uses_the_lock_file(project: Path):
    (project / "templates" / "checkout.py").write_text(
        CHECKOUT_TEMPLATE, encoding="utf-8"
    )
    lock = {"actions/checkout@v4": f"actions/checkout@{CHECKOUT_V4}"}
    (project / "gat.lock.json").write_text(json.dumps(lock), encoding="utf-8")

    assert build(project, "--frozen") == 0

    text = (project / "workflows" / "checkout.yml").read_text(encoding="utf-8")
    assert f"uses: actions/checkout@{CHECKOUT_V4}\n" in text


def test_template_without_workflow_fails(
    project: Path, capsys: pytest.CaptureFixture[str]
):
    (project / "templates" / "broken.py").write_text("x = 1\n", encoding="utf-8")

    assert build(project) == 1

    assert "must define 'workflow = Workflow(...)'" in capsys.readouterr().err


def test_no_templates_fails(tmp_path: Path):
    (tmp_path / "templates").mkdir()

    assert build(tmp_path) == 1


def test_load_templates(project: Path):
    templates = project / "templates"
    (templates / "many.py").write_text(MANY_TEMPLATE, encoding="utf-8")
    (templates / "_shared.py").write_text("raise RuntimeError\n", encoding="utf-8")

    workflows = load_templates(templates)

    assert list(workflows) == ["lint.yml", "test.yml", "simple.yml"]
    assert [workflow.name for workflow in workflows.values()] == [
        "lint",
        "test",
        "Simple",
    ]


def test_load_templates_rejects_duplicate_output_files(project: Path):
    (project / "templates" / "other.py").write_text(
        'from gat import Workflow\n\nWORKFLOWS = {"simple.yml": Workflow("Other")}\n',
        encoding="utf-8",
    )

    with pytest.raises(GatError, match="more than one template writes simple.yml"):
        load_templates(project / "templates")


def test_build_creates_the_output_directory(project: Path):
    output = project / "nested" / "workflows"

    assert build(project, "--output", str(output)) == 0

    assert [path.name for path in output.iterdir()] == ["simple.yml"]
    assert not (project / "workflows").exists()
