import pytest
from pytest import param

from gat import (
    ConcurrencyGroup,
    Event,
    PushOptions,
    RunStep,
    ScheduleOptions,
    StepsJob,
    StructuralError,
    UseStep,
    UsesJob,
    Workflow,
    WorkflowDispatchInput,
    WorkflowDispatchOptions,
)
from gat._workflow import UNSET

SIMPLE_JOB = {"steps": [{"run": "exit 0"}]}


def test_mutators_return_the_same_workflow():
    workflow = Workflow("Chained")

    assert workflow.on("push") is workflow
    assert workflow.add_job("job1", SIMPLE_JOB) is workflow
    assert workflow.set_env("A", "1") is workflow
    assert workflow.add_defaults(working_directory="app") is workflow
    assert workflow.set_concurrency_group(None) is workflow


def test_on_twice_records_two_events():
    workflow = Workflow("Events").on("push").on("push", {"branches": ["main"]})

    assert [event.name for event in workflow.events] == ["push", "push"]
    assert workflow.events[1].options == PushOptions(branches=["main"])


@pytest.mark.parametrize(
    "name",
    [
        param("job 1", id="space"),
        param(" job1", id="leading space"),
        param("job1\t", id="trailing tab"),
        param("job\n1", id="newline"),
        param("", id="empty"),
    ],
)
def test_add_job_rejects_invalid_names(name: str):
    with pytest.raises(StructuralError):
        Workflow("Names").add_job(name, SIMPLE_JOB)


def test_add_job_rejects_duplicate_names():
    workflow = Workflow("Duplicates").add_job("job1", SIMPLE_JOB)

    with pytest.raises(StructuralError, match="Duplicate job name 'job1'"):
        workflow.add_job("job1", SIMPLE_JOB)


def test_add_job_accepts_dependency_on_earlier_job():
    workflow = (
        Workflow("Needs")
        .add_job("job1", SIMPLE_JOB)
        .add_job("job2", {**SIMPLE_JOB, "needs": ["job1"]})
    )

    assert workflow.job_names() == ["job1", "job2"]


@pytest.mark.parametrize(
    "depends_on, message",
    [
        param(["job2"], "not declared before it", id="forward reference"),
        param(["missing"], "not declared before it", id="unknown job"),
        param(["job1"], "cannot depend on itself", id="itself"),
    ],
)
def test_add_job_rejects_dependencies_not_declared_before(
    depends_on: list[str], message: str
):
    workflow = Workflow("Needs")

    with pytest.raises(StructuralError, match=message):
        workflow.add_job("job1", {**SIMPLE_JOB, "needs": depends_on})


def test_add_job_narrows_to_uses_job_by_uses_key():
    workflow = Workflow("Uses").add_job(
        "job1",
        {
            "uses": "example/example/.github/workflows/example1.yml@main",
            "with": {"foo": "foo"},
            "secrets": "inherit",
        },
    )

    job = workflow.jobs[0].job
    assert isinstance(job, UsesJob)
    assert job.secrets == "inherit"
    assert job.with_ == {"foo": "foo"}


def test_add_job_converts_steps():
    workflow = Workflow("Steps").add_job(
        "job1",
        {
            "steps": [
                "echo implicit",
                {"name": "Checkout", "uses": "actions/checkout@v4", "with": {"depth": 1}},
                {"run": "make", "if": "success()", "timeout-minutes": 5},
            ]
        },
    )

    job = workflow.jobs[0].job
    assert isinstance(job, StepsJob)
    assert job.steps == [
        RunStep(run="echo implicit"),
        UseStep(name="Checkout", uses="actions/checkout@v4", with_={"depth": 1}),
        RunStep(run="make", if_expression="success()", timeout=5),
    ]


@pytest.mark.parametrize(
    "job, message",
    [
        param({"steps": []}, "at least one step", id="no steps"),
        param({}, "either 'steps' or 'uses'", id="neither steps nor uses"),
        param(
            {"steps": [{"run": "a", "uses": "b/c@d"}]},
            "both 'run' and 'uses'",
            id="step with run and uses",
        ),
        param({"steps": [{"name": "x"}]}, "either 'run' or 'uses'", id="empty step"),
        param({"steps": [{"run": 1}]}, "Expected a string", id="run not a string"),
        param({**SIMPLE_JOB, "runs_on": "x"}, "Unknown key 'runs_on'", id="unknown key"),
        param(
            {"uses": "a/b/.github/workflows/c.yml@main", "steps": []},
            "Unknown key 'steps'",
            id="uses job with steps",
        ),
        param(
            {"uses": "a/b/.github/workflows/c.yml@main", "secrets": "all"},
            "Expected an object",
            id="secrets neither mapping nor inherit",
        ),
        param(
            {**SIMPLE_JOB, "concurrency": {"group": "x"}},
            "Expected a ConcurrencyGroup",
            id="concurrency as mapping",
        ),
    ],
)
def test_add_job_rejects_malformed_jobs(job: dict[str, object], message: str):
    with pytest.raises(StructuralError, match=message):
        Workflow("Malformed").add_job("job1", job)


def test_on_converts_options_to_the_event_class():
    workflow = Workflow("Dispatch").on(
        "workflow_dispatch",
        {
            "inputs": {
                "foo": {"description": "A foo input", "required": True},
                "bar": {
                    "description": "A bar input",
                    "type": "choice",
                    "options": ["bar", "baz"],
                },
            }
        },
    )

    assert workflow.events[0].options == WorkflowDispatchOptions(
        inputs={
            "foo": WorkflowDispatchInput(description="A foo input", required=True),
            "bar": WorkflowDispatchInput(
                description="A bar input", type="choice", options=["bar", "baz"]
            ),
        }
    )


@pytest.mark.parametrize(
    "options",
    [
        param([{"cron": "0 4 * * 1-5"}], id="cron records"),
        param(["0 4 * * 1-5"], id="cron strings"),
        param(ScheduleOptions(("0 4 * * 1-5",)), id="options class"),
    ],
)
def test_on_schedule_accepts_cron_forms(options: object):
    workflow = Workflow("Schedule").on("schedule", options)

    assert workflow.events[0].options == ScheduleOptions(("0 4 * * 1-5",))


@pytest.mark.parametrize(
    "name, options, message",
    [
        param("push", {"types": ["opened"]}, "Unknown key 'types'", id="unknown key"),
        param(
            "pull_request",
            {"types": ["merged"]},
            "Unexpected value 'merged'",
            id="value outside enumeration",
        ),
        param("push", {"branches": "main"}, "Expected an array", id="wrong type"),
        param("push", ["main"], "Expected an object", id="array for object options"),
        param("schedule", None, "needs cron expressions", id="schedule without crons"),
        param("schedule", [], "at least one cron", id="schedule with no crons"),
        param(
            "schedule", [{"cron": "* * * * *", "tz": "UTC"}], "only a 'cron'", id="cron extra key"
        ),
        param("release", None, "Unknown event 'release'", id="unknown event"),
        param(
            "push",
            WorkflowDispatchOptions(),
            "takes PushOptions",
            id="options class of another event",
        ),
        param(
            "workflow_dispatch",
            {"inputs": {"x": {"required": True}}},
            "Missing required key 'description'",
            id="input without description",
        ),
        param(
            "workflow_dispatch",
            {"inputs": {"x": {"description": "x", "options": ["a"]}}},
            "not of type 'choice'",
            id="options without choice type",
        ),
    ],
)
def test_on_rejects_malformed_event_options(name: str, options: object, message: str):
    with pytest.raises(StructuralError, match=message):
        Workflow("Malformed").on(name, options)


def test_event_checks_options_class_at_construction():
    with pytest.raises(StructuralError):
        Event("pull_request", PushOptions(branches=["main"]))


def test_concurrency_group_is_tri_state():
    workflow = Workflow("Concurrency")
    assert workflow.concurrency_group is UNSET

    workflow.set_concurrency_group(ConcurrencyGroup("x", cancel_previous=True))
    assert workflow.concurrency_group == ConcurrencyGroup("x", True)

    workflow.set_concurrency_group(None)
    assert workflow.concurrency_group is None


def test_action_references_are_distinct_in_first_use_order():
    workflow = (
        Workflow("References")
        .add_job(
            "job1",
            {
                "steps": [
                    {"uses": "actions/checkout@v4"},
                    {"run": "make"},
                    {"uses": "actions/setup-python@v5"},
                ]
            },
        )
        .add_job("job2", {"uses": "a/b/.github/workflows/c.yml@main"})
        .add_job(
            "job3",
            {"steps": [{"uses": "actions/setup-python@v5"}, {"uses": "actions/checkout@v4"}]},
        )
    )

    assert workflow.action_references() == [
        "actions/checkout@v4",
        "actions/setup-python@v5",
    ]
