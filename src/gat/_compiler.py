from __future__ import annotations

import re
from collections.abc import Mapping, Sequence

from ._common import to_json
from ._job import ConcurrencyGroup, Matrix, RunnerGroup, StepsJob, UsesJob
from ._step import RunStep, Step, UseStep
from ._validation import Json
from ._workflow import Workflow

DEFAULT_RUNNER = "ubuntu-22.04"

DEFAULT_TIMEOUT_MINUTES = 15

# Letters and digits of any script
_RUNS = re.compile(r"[^\W_]+")


def _split_run(run: str) -> list[str]:
    words = list[str]()
    start = 0
    for i in range(1, len(run)):
        previous, char = run[i - 1], run[i]
        following = run[i + 1 : i + 2]
        if (
            previous.isdigit() != char.isdigit()
            or (previous.islower() and char.isupper())
            # the last capital of an acronym starts the next word: HTTPServer
            or (previous.isupper() and char.isupper() and following.islower())
        ):
            words.append(run[start:i])
            start = i
    words.append(run[start:])
    return words


def kebab_case(text: str) -> str:
    """Return ``text`` as lower case words joined by ``-``

    Words are split at separators, case changes and digit runs, so
    ``"Build & deployHTTPServer v2"`` becomes ``build-deploy-http-server-v-2``.
    Letters outside ASCII are kept: ``"Déploiement"`` becomes ``déploiement``.
    """
    return "-".join(
        word.lower() for run in _RUNS.findall(text) for word in _split_run(run)
    )


def _present(**pairs: Json) -> dict[str, Json]:
    """Return the key value pairs that are not None, in order

    Keyword names use ``_`` where the schema key has ``-``.
    """
    return {k.replace("_", "-"): v for k, v in pairs.items() if v is not None}


def compile_document(
    workflow: Workflow, resolved: Mapping[str, str]
) -> dict[str, Json]:
    """Return the GitHub Actions workflow for ``workflow``

    Args:
        workflow: the workflow to compile
        resolved: pinned references by action reference; steps whose
            reference is missing keep it as written

    Returns:
        the document, with keys in the order they are to be written
    """
    document: dict[str, Json] = {
        "name": workflow.name,
        # An event without options must still be present, as null.
        "on": {event.name: event.options_json() for event in workflow.events},
    }

    if isinstance(workflow.concurrency_group, ConcurrencyGroup):
        document["concurrency"] = {
            "group": workflow.concurrency_group.group_suffix,
            "cancel-in-progress": workflow.concurrency_group.cancel_previous,
        }

    if workflow.default_options is not None:
        document["defaults"] = _defaults(workflow.default_options.working_directory)

    if workflow.env:
        document["env"] = {var.name: var.value for var in workflow.env}

    document["jobs"] = {
        named.name: _compile_uses_job(named.job)
        if isinstance(named.job, UsesJob)
        else _compile_steps_job(workflow.name, named.name, named.job, resolved)
        for named in workflow.jobs
    }

    return document


def _defaults(working_directory: str) -> dict[str, Json]:
    return {"run": {"working-directory": working_directory}}


def _needs(depends_on: Sequence[str]) -> Json:
    return list(depends_on) if depends_on else None


def _compile_uses_job(job: UsesJob) -> dict[str, Json]:
    return _present(
        name=job.pretty_name,
        **{"if": job.if_expression},
        needs=_needs(job.depends_on),
        uses=job.uses,
        **{"with": to_json(job.with_)},
        secrets=to_json(job.secrets),
        environment=job.environment,
    )


def _compile_steps_job(
    workflow_name: str, job_name: str, job: StepsJob, resolved: Mapping[str, str]
) -> dict[str, Json]:
    concurrency: Json = None
    if job.concurrency is not None:
        # Prefixed so that jobs and workflows sharing a suffix never collide.
        prefix = f"{kebab_case(workflow_name)}-{job_name}"
        concurrency = {
            "group": f"{prefix}-{job.concurrency.group_suffix}",
            "cancel-in-progress": job.concurrency.cancel_previous,
        }

    strategy: Json = None
    if job.matrix is not None:
        # One failing combination must not cancel the others.
        strategy = {"fail-fast": False, "matrix": _matrix(job.matrix)}

    return _present(
        name=job.pretty_name,
        permissions=to_json(job.permissions),
        **{"if": job.if_expression},
        runs_on=_runner(job),
        timeout_minutes=DEFAULT_TIMEOUT_MINUTES if job.timeout is None else job.timeout,
        needs=_needs(job.depends_on),
        services=to_json(job.services),
        concurrency=concurrency,
        strategy=strategy,
        env=to_json(job.env),
        environment=job.environment,
        defaults=None
        if job.working_directory is None
        else _defaults(job.working_directory),
        steps=[_compile_step(step, resolved) for step in job.steps],
        outputs=to_json(job.outputs),
    )


def _runner(job: StepsJob) -> Json:
    match job.runs_on:
        case None:
            return DEFAULT_RUNNER
        case str():
            return job.runs_on
        case RunnerGroup():
            return to_json(job.runs_on)
        case _:
            return list(job.runs_on)


def _matrix(matrix: Matrix | str) -> Json:
    if isinstance(matrix, str):
        return matrix
    result: dict[str, Json] = {
        axis: list(values) for axis, values in matrix.axes.items()
    }
    if matrix.include is not None:
        result["include"] = [dict(record) for record in matrix.include]
    return result


def _compile_step(step: Step, resolved: Mapping[str, str]) -> dict[str, Json]:
    common = _present(
        id=step.id,
        name=step.name,
        **{"if": step.if_expression},
        continue_on_error=step.continue_on_error,
        working_directory=step.working_directory,
        timeout_minutes=step.timeout,
        env=to_json(step.env),
    )
    match step:
        case RunStep():
            return {**common, **_present(run=step.run, shell=step.shell)}
        case UseStep():
            return {
                **common,
                **_present(
                    uses=resolved.get(step.uses, step.uses),
                    **{"with": to_json(step.with_)},
                ),
            }
        case _:
            raise TypeError(f"Unsupported step {step.__class__.__name__}")
