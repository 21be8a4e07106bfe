"""
Built-in Docker Compose deployment pipeline.

Stages: Checkout -> Validate -> Prepare Environment -> Deploy ->
Health Check -> Verify, with post handlers that dump logs on failure and
prune dangling images afterwards.
"""

import logging
import time
from datetime import datetime, timezone
from typing import Callable, Dict, Optional

from runner.src.config import Settings
from runner.src.core.context import ExecutionContext
from runner.src.core.errors import CommandError, PipelineConfigError, PipelineError
from runner.src.core.guards import param_is
from runner.src.core.pipeline import Pipeline, PostCondition
from runner.src.core.stage import Stage
from runner.src.core.step import CommandStep, PollingStep, Step
from runner.src.models.parameter import ParameterSpec, ParameterType
from runner.src.models.step import CommandOutput
from runner.src.services.compose import ComposeCommand, prune_images_command
from runner.src.services.env_file import write_env_file
from runner.src.services.git import GitCheckout
from runner.src.services.health import HttpHealthCheck
from runner.src.services.secrets import SecretResolver, get_secret_resolver

logger = logging.getLogger(__name__)

PIPELINE_NAME = "compose-deploy"

def deploy_parameters(settings: Settings):
    return [
        ParameterSpec(name="BRANCH", default=settings.branch, description="Git branch to deploy"),
        ParameterSpec(name="DEPLOY_ENV", default="production", description="Target environment, written as APP_ENV"),
        ParameterSpec(name="IMAGE_TAG", description="Image tag; defaults to the short commit id"),
        ParameterSpec(name="FORCE_REBUILD", type=ParameterType.BOOLEAN, default=False,
                      description="Rebuild images without cache and recreate containers"),
        ParameterSpec(name="PULL_IMAGES", type=ParameterType.BOOLEAN, default=True,
                      description="Pull images before starting services"),
        ParameterSpec(name="SKIP_HEALTH_CHECK", type=ParameterType.BOOLEAN, default=False,
                      description="Skip the HTTP health check stage"),
        ParameterSpec(name="CLEANUP", type=ParameterType.BOOLEAN, default=True,
                      description="Prune dangling images after the run"),
        ParameterSpec(name="HEALTH_CHECK_URL", default=settings.health_check_url,
                      description="URL polled until the deployment is healthy"),
    ]

def build_compose_pipeline(
    settings: Settings,
    executor,
    checkout: Optional[GitCheckout] = None,
    secret_resolver: Optional[SecretResolver] = None,
    http_client=None,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
) -> Pipeline:
    checkout = checkout or GitCheckout(executor, settings.repo_url, settings.branch)
    secret_resolver = secret_resolver or get_secret_resolver(settings.secrets_dir)
    compose = ComposeCommand(
        compose_file=settings.compose_file,
        project_name=settings.project_name,
        env_file=settings.env_file,
    )
    # The env file is generated after validation
    validate_compose = ComposeCommand(
        compose_file=settings.compose_file,
        project_name=settings.project_name,
    )

    def run_checkout(ctx: ExecutionContext) -> CommandOutput:
        commit = checkout.checkout(ctx.workspace, branch=ctx.param("BRANCH"))
        ctx.set("GIT_COMMIT", commit)
        ctx.set("GIT_COMMIT_SHORT", commit[:7])
        ctx.set("GIT_BRANCH", ctx.param("BRANCH"))
        return CommandOutput(exit_code=0, stdout=commit)

    def require_compose_file(ctx: ExecutionContext):
        path = ctx.workspace / settings.compose_file
        if not path.is_file():
            raise PipelineConfigError(f"Compose file not found: {path}")
        logger.info(f"Using compose file {path}")

    def resolve_secrets(ctx: ExecutionContext):
        for env_key, secret_id in settings.secrets.items():
            ctx.add_secret(env_key, secret_resolver.resolve(secret_id))
        logger.info(f"Resolved {len(settings.secrets)} secret(s)")

    def write_environment(ctx: ExecutionContext):
        image_tag = ctx.get("IMAGE_TAG") or ctx.get("GIT_COMMIT_SHORT", "latest")
        ctx.set("IMAGE_TAG", image_tag)

        values: Dict[str, str] = {
            "APP_ENV": ctx.require("DEPLOY_ENV"),
            "IMAGE_TAG": image_tag,
            "GIT_COMMIT": ctx.get("GIT_COMMIT", "unknown"),
            "GIT_BRANCH": ctx.get("GIT_BRANCH", ""),
            "BUILD_ID": ctx.run_id,
            "DEPLOYED_AT": datetime.now(timezone.utc).isoformat(timespec="seconds"),
        }
        for env_key in settings.secrets:
            values[env_key] = ctx.secret(env_key)

        write_env_file(ctx.workspace / settings.env_file, values)

    def up_command(ctx: ExecutionContext):
        force = ctx.flag("FORCE_REBUILD")
        return compose.up(detach=True, build=not force, force_recreate=force, remove_orphans=True)

    def verify_running(ctx: ExecutionContext) -> CommandOutput:
        command = compose.ps(status="running", services_only=True)
        output = executor.execute(command, cwd=ctx.workspace, env=ctx.as_env())
        if not output.ok:
            raise CommandError(command, output.exit_code, output.stdout, output.stderr)
        running = [line for line in output.stdout.splitlines() if line.strip()]
        if not running and not getattr(executor, "dry_run", False):
            raise PipelineError("No services are running")
        logger.info(f"Running services: {', '.join(running) or '-'}")
        return output

    def report_success(ctx: ExecutionContext):
        logger.info(
            f"Deployed {ctx.get('GIT_COMMIT_SHORT', 'unknown')} "
            f"(tag {ctx.get('IMAGE_TAG')}) to {ctx.get('DEPLOY_ENV')}"
        )

    health = HttpHealthCheck(
        settings.health_check_url,
        timeout=settings.health_check_request_timeout,
        client=http_client,
    )

    stages = [
        Stage("Checkout", [
            Step("Checkout source", run_checkout),
        ]),
        Stage("Validate", [
            Step("Check compose file", require_compose_file),
            CommandStep("Check docker compose", compose.version(), executor),
            CommandStep("Validate compose config", validate_compose.config(quiet=True), executor),
        ]),
        Stage("Prepare Environment", [
            Step("Resolve secrets", resolve_secrets),
            Step("Write env file", write_environment),
        ]),
        Stage("Deploy", [
            CommandStep("Pull images", compose.pull(), executor, when=param_is("PULL_IMAGES")),
            CommandStep("Build images", compose.build(no_cache=True, pull=True), executor,
                        when=param_is("FORCE_REBUILD")),
            CommandStep("Stop previous deployment", compose.down(remove_orphans=True), executor,
                        ignore_errors=True),
            CommandStep("Start services", up_command, executor),
        ]),
        Stage("Health Check", [
            PollingStep(
                "Wait for healthy",
                lambda ctx: health.check(ctx.require("HEALTH_CHECK_URL")),
                deadline=settings.health_check_deadline,
                interval=settings.health_check_interval,
                initial_delay=settings.health_check_initial_delay,
                description="service health",
                clock=clock,
                sleep=sleep,
            ),
        ], when=param_is("SKIP_HEALTH_CHECK", False)),
        Stage("Verify", [
            CommandStep("List services", compose.ps(), executor),
            Step("Check running services", verify_running),
        ]),
    ]

    post = {
        PostCondition.SUCCESS: Stage("post:success", [
            Step("Report deployment", report_success),
        ]),
        PostCondition.FAILURE: Stage("post:failure", [
            CommandStep("Collect service logs", compose.logs(tail=100), executor, ignore_errors=True),
            CommandStep("Show service status", compose.ps(all=True), executor, ignore_errors=True),
        ]),
        PostCondition.ALWAYS: Stage("post:always", [
            CommandStep("Prune dangling images", prune_images_command(), executor,
                        when=param_is("CLEANUP"), ignore_errors=True),
        ]),
    }

    return Pipeline(PIPELINE_NAME, stages, parameters=deploy_parameters(settings), post=post)
