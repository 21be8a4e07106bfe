"""
DeployX Runner - command line entry point.
"""

import logging
import signal
import sys
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from runner.src.config import Settings, get_settings
from runner.src.core.errors import PipelineError
from runner.src.core.parameters import parse_overrides
from runner.src.core.pipeline import Pipeline
from runner.src.core.runner import Runner
from runner.src.models.step import summarize
from runner.src.pipelines import build_compose_pipeline, load_pipeline
from runner.src.services.shell import CommandExecutor
from runner.src.services.status_reporter import get_status_reporter

logger = logging.getLogger(__name__)
console = Console()

app = typer.Typer(
    name="deployx",
    help="Run Docker Compose deployment pipelines.",
    no_args_is_help=True,
)

def configure_logging(level: str = "INFO"):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

def get_pipeline(settings: Settings, pipeline_file: Optional[Path], executor: CommandExecutor) -> Pipeline:
    """The YAML pipeline when given, otherwise the built-in compose deployment."""
    if pipeline_file is not None:
        return load_pipeline(str(pipeline_file), executor)
    return build_compose_pipeline(settings, executor)

PipelineOption = typer.Option(
    None, "--pipeline", "-f", help="Pipeline YAML file (default: built-in compose deployment)",
)

@app.command()
def run(
    pipeline_file: Optional[Path] = PipelineOption,
    param: Optional[List[str]] = typer.Option(None, "--param", "-p", help="Parameter override NAME=VALUE"),
    workspace: Optional[Path] = typer.Option(None, "--workspace", "-w", help="Working directory"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Log commands instead of running them"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Logging level"),
):
    """Run a pipeline. Exits 0 on success, 1 on failure, 130 when cancelled."""
    settings = get_settings()
    configure_logging(log_level or settings.log_level)

    executor = CommandExecutor(timeout=settings.command_timeout, dry_run=dry_run)

    try:
        overrides = parse_overrides(param or [])
        pipeline = get_pipeline(settings, pipeline_file, executor)
    except PipelineError as e:
        logger.error(str(e))
        raise typer.Exit(code=2)

    runner = Runner(
        pipeline,
        workspace=workspace or Path(settings.workspace),
        reporter=get_status_reporter(settings.redis_url),
    )

    def handle_interrupt(signum, frame):
        logger.warning("Interrupt received, cancelling run...")
        runner.cancel()

    previous = signal.signal(signal.SIGINT, handle_interrupt)
    try:
        result = runner.run(overrides)
    except PipelineError as e:
        # Unknown, invalid or malformed parameters
        logger.error(str(e))
        raise typer.Exit(code=2)
    finally:
        signal.signal(signal.SIGINT, previous)

    for line in summarize(result.steps).splitlines():
        logger.info(line)
    for error in result.handler_errors:
        logger.warning(f"Post handler error: {error}")

    raise typer.Exit(code=result.exit_code)

@app.command()
def params(pipeline_file: Optional[Path] = PipelineOption):
    """List the parameters a pipeline accepts."""
    settings = get_settings()
    try:
        pipeline = get_pipeline(settings, pipeline_file, CommandExecutor(dry_run=True))
    except PipelineError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(code=2)

    table = Table(title=f"Parameters of {pipeline.name}")
    table.add_column("Name", style="cyan")
    table.add_column("Type")
    table.add_column("Default")
    table.add_column("Description")

    for spec in pipeline.parameters:
        default = "-" if spec.default is None else str(spec.default)
        table.add_row(spec.name, spec.type.value, default, spec.description)

    console.print(table)

@app.command()
def validate(pipeline_file: Path = typer.Option(..., "--pipeline", "-f", help="Pipeline YAML file")):
    """Check a pipeline file without running it."""
    try:
        pipeline = load_pipeline(str(pipeline_file), CommandExecutor(dry_run=True))
    except PipelineError as e:
        console.print(f"[red]Invalid pipeline:[/red] {e}")
        raise typer.Exit(code=1)

    steps = sum(len(stage.steps) for stage in pipeline.stages)
    console.print(
        f"[green]OK[/green] {pipeline.name}: {len(pipeline.stages)} stages, "
        f"{steps} steps, {len(pipeline.parameters)} parameters"
    )

def main():
    """Main entry point."""
    app()

if __name__ == "__main__":
    main()
