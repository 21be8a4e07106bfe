"""Tests for the pipeline runner and its post handlers."""

import logging
from unittest.mock import MagicMock

import pytest

from runner.src.core.errors import CommandError, InvalidTransitionError, UnknownParameterError
from runner.src.core.guards import file_exists
from runner.src.core.pipeline import Pipeline, PostCondition
from runner.src.core.runner import Runner
from runner.src.core.stage import Stage
from runner.src.core.step import Step
from runner.src.models.parameter import ParameterSpec, ParameterType
from runner.src.models.run import RunStatus
from runner.src.models.step import CommandOutput, StepStatus
from runner.src.services.status_reporter import RedisStatusReporter, StatusReporter

def recorder(calls, name):
    return Step(name, lambda ctx: calls.append(name))

def failing(name, message="boom"):
    def action(ctx):
        raise RuntimeError(message)
    return Step(name, action)

def make_pipeline(calls, stages, post_overrides=None):
    post = {
        PostCondition.SUCCESS: Stage("post:success", [recorder(calls, "success")]),
        PostCondition.FAILURE: Stage("post:failure", [recorder(calls, "failure")]),
        PostCondition.ALWAYS: Stage("post:always", [recorder(calls, "always")]),
    }
    post.update(post_overrides or {})
    return Pipeline("test", stages, post=post)

def test_successful_run_invokes_success_then_always():
    calls = []
    pipeline = make_pipeline(calls, [
        Stage("Checkout", [recorder(calls, "checkout")]),
        Stage("Deploy", [recorder(calls, "deploy")]),
    ])

    result = Runner(pipeline).run()

    assert result.status == RunStatus.SUCCEEDED
    assert pipeline.status == RunStatus.SUCCEEDED
    assert result.exit_code == 0
    assert calls == ["checkout", "deploy", "success", "always"]

def test_validate_failure_skips_deploy():
    calls = []
    pipeline = make_pipeline(calls, [
        Stage("Checkout", [recorder(calls, "checkout")]),
        Stage("Validate", [failing("validate")]),
        Stage("Deploy", [recorder(calls, "deploy")]),
    ])

    result = Runner(pipeline).run()

    assert result.status == RunStatus.FAILED
    assert result.exit_code == 1
    assert "deploy" not in calls
    assert calls.count("always") == 1
    assert calls == ["checkout", "failure", "always"]
    assert "Stage 'Validate' failed at step 'validate'" in result.error
    assert result.step("validate").status == StepStatus.FAILED

@pytest.mark.parametrize("failing_stage", [0, 1, 2])
def test_exactly_one_outcome_handler(failing_stage):
    calls = []
    stages = []
    for i in range(3):
        step = failing(f"s{i}") if i == failing_stage else recorder(calls, f"s{i}")
        stages.append(Stage(f"Stage {i}", [step]))

    Runner(make_pipeline(calls, stages)).run()

    assert calls.count("failure") == 1
    assert calls.count("success") == 0
    assert calls.count("always") == 1
    assert not any(c == f"s{j}" for c in calls for j in range(failing_stage + 1, 3))

def test_always_runs_when_failure_handler_fails(caplog):
    calls = []
    pipeline = make_pipeline(
        calls,
        [Stage("Deploy", [failing("deploy")])],
        {PostCondition.FAILURE: Stage("post:failure", [failing("collect logs", "logs unavailable")])},
    )

    with caplog.at_level(logging.ERROR):
        result = Runner(pipeline).run()

    assert result.status == RunStatus.FAILED
    assert calls == ["always"]
    assert result.handler_errors and "logs unavailable" in result.handler_errors[0]
    assert "Post handler 'failure' failed" in caplog.text

def test_success_handler_failure_keeps_status():
    calls = []
    pipeline = make_pipeline(
        calls,
        [Stage("Deploy", [recorder(calls, "deploy")])],
        {PostCondition.SUCCESS: Stage("post:success", [failing("notify")])},
    )

    result = Runner(pipeline).run()

    assert result.status == RunStatus.SUCCEEDED
    assert calls == ["deploy", "always"]
    assert len(result.handler_errors) == 1

def test_always_handler_failure_is_not_raised():
    calls = []
    pipeline = make_pipeline(
        calls,
        [Stage("Deploy", [recorder(calls, "deploy")])],
        {PostCondition.ALWAYS: Stage("post:always", [failing("prune")])},
    )

    result = Runner(pipeline).run()

    assert result.status == RunStatus.SUCCEEDED
    assert calls == ["deploy", "success"]
    assert result.handler_errors[0].startswith("always:")

def test_cancel_skips_to_always():
    calls = []
    holder = {}

    def cancel(ctx):
        calls.append("cancel")
        holder["runner"].cancel()

    pipeline = make_pipeline(calls, [
        Stage("Deploy", [Step("cancel", cancel), recorder(calls, "after cancel")]),
        Stage("Verify", [recorder(calls, "verify")]),
    ])
    runner = Runner(pipeline)
    holder["runner"] = runner

    result = runner.run()

    assert result.status == RunStatus.CANCELLED
    assert result.exit_code == 130
    assert calls == ["cancel", "always"]

def test_unknown_parameter_leaves_pipeline_pending():
    calls = []
    pipeline = make_pipeline(calls, [Stage("Deploy", [recorder(calls, "deploy")])])

    with pytest.raises(UnknownParameterError):
        Runner(pipeline).run({"NOPE": "1"})

    assert pipeline.status == RunStatus.PENDING
    assert calls == []

def test_pipeline_runs_only_once():
    calls = []
    pipeline = make_pipeline(calls, [Stage("Deploy", [recorder(calls, "deploy")])])
    Runner(pipeline).run()

    with pytest.raises(InvalidTransitionError):
        Runner(pipeline).run()

def test_parameters_reach_steps():
    seen = {}
    pipeline = Pipeline(
        "params",
        [Stage("Deploy", [Step("read", lambda ctx: seen.update(env=ctx.get("DEPLOY_ENV"), rebuild=ctx.flag("FORCE_REBUILD")))])],
        parameters=[
            ParameterSpec(name="DEPLOY_ENV", default="production"),
            ParameterSpec(name="FORCE_REBUILD", type=ParameterType.BOOLEAN, default=False),
        ],
    )

    Runner(pipeline).run({"FORCE_REBUILD": "true"})

    assert seen == {"env": "production", "rebuild": True}

def test_secrets_are_masked_in_logs(caplog):
    def leak(ctx):
        ctx.add_secret("TOKEN", "hunter2")
        logging.getLogger("test").info("token=hunter2")

    pipeline = Pipeline("masking", [Stage("Prepare", [Step("leak", leak)])])

    with caplog.at_level(logging.INFO):
        Runner(pipeline).run()

    assert "hunter2" not in caplog.text
    assert "token=****" in caplog.text

class RecordingReporter(StatusReporter):
    def __init__(self):
        self.runs = []
        self.steps = []

    def update_run_status(self, run_id, status):
        self.runs.append(status)

    def update_step_status(self, run_id, result):
        self.steps.append((result.stage, result.name, result.status))

def test_reporter_sees_transitions_and_steps():
    calls = []
    reporter = RecordingReporter()
    pipeline = make_pipeline(calls, [Stage("Deploy", [recorder(calls, "deploy")])])

    Runner(pipeline, reporter=reporter, run_id="abc").run()

    assert reporter.runs == [RunStatus.RUNNING, RunStatus.SUCCEEDED]
    assert reporter.steps[0] == ("Deploy", "deploy", StepStatus.SUCCEEDED)
    assert ("post:always", "always", StepStatus.SUCCEEDED) in reporter.steps

def test_failing_stage_guard_fails_the_run():
    calls = []
    pipeline = make_pipeline(calls, [
        Stage("Deploy", [recorder(calls, "deploy")], when=file_exists("${NOPE}")),
    ])

    result = Runner(pipeline).run()

    assert result.status == RunStatus.FAILED
    assert result.finished_at is not None
    assert "Stage 'Deploy' failed at step '<guard>'" in result.error
    assert calls == ["failure", "always"]

def test_secrets_are_masked_in_reported_results():
    def leak(ctx):
        ctx.add_secret("TOKEN", "hunter2")
        return CommandOutput(exit_code=0, stdout="password is hunter2")

    def fail(ctx):
        raise CommandError(["login", "-p", "hunter2"], 1, stderr="bad password hunter2")

    client = MagicMock()
    pipeline = Pipeline("masking", [Stage("Login", [Step("leak", leak), Step("login", fail)])])

    result = Runner(pipeline, reporter=RedisStatusReporter("redis://unused", client=client)).run()

    payloads = [c.args[1] for c in client.rpush.call_args_list]
    assert len(payloads) == 2
    assert all("hunter2" not in p for p in payloads)
    assert "password is ****" in payloads[0]
    assert "hunter2" not in result.error
    assert result.step("leak").output.stdout == "password is ****"
    assert "hunter2" not in result.step("login").output.stderr
