"""InsightBoard CLI entrypoint."""

import asyncio
import json
import sys
from pathlib import Path

import click
from pydantic import TypeAdapter, ValidationError

from .config.loader import ConfigError, apply_env_overrides, create_default_config, load_config
from .config.models import InsightBoardConfig
from .graph.models import ProcessedTask, RawTask, TaskStatus
from .graph.processor import process_graph
from .storage.store import JsonStore, StoreError
from .transcript.body import TranscriptValidationError, transcript_from_body, validate_transcript
from .transcript.factory import create_parser
from .transcript.llm import LLMOutputError, LLMRequestError, LLMTimeoutError, ParserConfigError
from .transcript.service import JobNotFoundError, TranscriptService
from .utils.logging import setup_logging

CONTEXT_SETTINGS = {
    "help_option_names": ["-h", "--help"],
}

DEFAULT_CONFIG_PATH = Path(".insightboard/config.yml")

# Errors reported as a one-line message instead of a traceback
CLI_ERRORS = (
    ConfigError,
    StoreError,
    TranscriptValidationError,
    ParserConfigError,
    LLMOutputError,
    LLMRequestError,
    LLMTimeoutError,
    JobNotFoundError,
)


def _fail(message: str) -> None:
    click.echo(f"✗ {message}", err=True)
    sys.exit(1)


def _load_config(ctx: click.Context) -> InsightBoardConfig:
    config_path: Path = ctx.obj["config_path"]
    if not config_path.exists() and config_path == DEFAULT_CONFIG_PATH:
        return apply_env_overrides(InsightBoardConfig())
    return load_config(config_path)


def _build_service(ctx: click.Context) -> tuple[InsightBoardConfig, TranscriptService]:
    config = _load_config(ctx)

    setup_logging(
        level="DEBUG" if ctx.obj["verbose"] else config.logging.level,
        log_dir=config.logging.log_dir,
        rotation_mb=config.logging.rotation_mb,
        retention_days=config.logging.retention_days,
        use_colors=True,
        console=ctx.obj["verbose"],
    )

    service = TranscriptService(
        parser=create_parser(config),
        store=JsonStore(config.storage.data_dir),
    )
    return config, service


def _read_transcript(source: str, max_length: int) -> str:
    if source == "-":
        body = sys.stdin.buffer.read()
    else:
        path = Path(source)
        if not path.is_file():
            raise TranscriptValidationError(f"Transcript file not found: {source}")
        try:
            body = path.read_bytes()
        except OSError as e:
            raise TranscriptValidationError(f"Cannot read transcript {source}: {e}")
    return validate_transcript(transcript_from_body(body), max_length)


def _task_dict(task: ProcessedTask) -> dict:
    return task.model_dump(mode="json")


def _echo_tasks(tasks: list[ProcessedTask]) -> None:
    for task in tasks:
        marker = "✓" if task.status == TaskStatus.READY else "✗"
        deps = ", ".join(task.dependencies) or "-"
        click.echo(
            f"  {marker} {task.id:<10} [{task.priority.value:<6}] {task.status.value:<13} "
            f"deps: {deps}  {task.description}"
        )


@click.group(context_settings=CONTEXT_SETTINGS)
@click.option(
    "--config",
    "-c",
    default=str(DEFAULT_CONFIG_PATH),
    help="Path to configuration file",
    type=click.Path(exists=False, path_type=Path),
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose output",
)
@click.pass_context
def cli(ctx: click.Context, config: Path, verbose: bool) -> None:
    """InsightBoard - turn meeting transcripts into dependency-checked task graphs."""
    setup_logging(level="DEBUG" if verbose else "WARNING", console=verbose)

    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config
    ctx.obj["verbose"] = verbose


@cli.command()
@click.option(
    "--force",
    "-f",
    is_flag=True,
    help="Overwrite existing configuration",
)
@click.pass_context
def init(ctx: click.Context, force: bool) -> None:
    """Initialize InsightBoard configuration."""
    config_path: Path = ctx.obj["config_path"]

    if config_path.exists() and not force:
        click.echo(f"Configuration already exists: {config_path}")
        click.echo("Use --force to overwrite")
        sys.exit(1)

    try:
        create_default_config(config_path)
    except OSError as e:
        _fail(f"Failed to create configuration: {e}")

    click.echo(f"✓ Created configuration: {config_path}")
    click.echo("\nNext steps:")
    click.echo(f"  1. Review and customize {config_path}")
    click.echo("  2. Export OPENAI_API_KEY to extract tasks with a language model")
    click.echo("  3. Run: insightboard process <transcript.txt>")


@cli.command()
@click.argument("source")
@click.option("--json", "as_json", is_flag=True, help="Print result as JSON")
@click.pass_context
def process(ctx: click.Context, source: str, as_json: bool) -> None:
    """Process a transcript file (or - for stdin) and store its tasks."""
    try:
        config, service = _build_service(ctx)
        transcript = _read_transcript(source, config.transcript.max_length)
        result = asyncio.run(service.process_transcript(transcript))
    except CLI_ERRORS as e:
        _fail(str(e))

    if as_json:
        click.echo(
            json.dumps(
                {
                    "transcriptId": result.transcript_id,
                    "tasks": [_task_dict(t) for t in result.tasks],
                },
                indent=2,
            )
        )
        return

    click.echo(f"Transcript: {result.transcript_id}")
    _echo_tasks(result.tasks)


async def _submit_and_wait(service: TranscriptService, transcript: str):
    submitted = await service.submit_job(transcript)
    await service.wait_for_jobs()
    return submitted


@cli.command()
@click.argument("source")
@click.option("--json", "as_json", is_flag=True, help="Print result as JSON")
@click.pass_context
def submit(ctx: click.Context, source: str, as_json: bool) -> None:
    """Submit a transcript as a job; identical transcripts reuse completed jobs."""
    try:
        config, service = _build_service(ctx)
        transcript = _read_transcript(source, config.transcript.max_length)
        submitted = asyncio.run(_submit_and_wait(service, transcript))
        status = service.get_job_status(submitted.job_id)
    except CLI_ERRORS as e:
        _fail(str(e))

    if as_json:
        click.echo(
            json.dumps(
                {"jobId": submitted.job_id, "status": submitted.status.value, "final": status.status.value},
                indent=2,
            )
        )
        return

    click.echo(f"Job: {submitted.job_id} ({submitted.status.value})")
    click.echo(f"Status: {status.status.value}")
    if status.error_message:
        click.echo(f"Error: {status.error_code or 'Error'}: {status.error_message}")


@cli.command()
@click.argument("job_id")
@click.option("--json", "as_json", is_flag=True, help="Print result as JSON")
@click.pass_context
def status(ctx: click.Context, job_id: str, as_json: bool) -> None:
    """Show job status and, once completed, its tasks."""
    try:
        _, service = _build_service(ctx)
        result = service.get_job_status(job_id)
    except CLI_ERRORS as e:
        _fail(str(e))

    if as_json:
        payload = {"jobId": result.job_id, "status": result.status.value}
        if result.transcript_id:
            payload["transcriptId"] = result.transcript_id
        if result.tasks is not None:
            payload["tasks"] = [_task_dict(t) for t in result.tasks]
        if result.error_message:
            payload["errorMessage"] = result.error_message
        if result.error_code:
            payload["errorCode"] = result.error_code
        click.echo(json.dumps(payload, indent=2))
        return

    click.echo(f"Job: {result.job_id}")
    click.echo(f"Status: {result.status.value}")
    if result.error_message:
        click.echo(f"Error: {result.error_code or 'Error'}: {result.error_message}")
    if result.transcript_id:
        click.echo(f"Transcript: {result.transcript_id}")
    if result.tasks:
        _echo_tasks(result.tasks)


@cli.command()
@click.argument("task_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def graph(task_file: Path) -> None:
    """Validate a JSON task list and print it with statuses."""
    try:
        with open(task_file, encoding="utf-8") as f:
            data = json.load(f)
        if isinstance(data, dict):
            data = data.get("tasks", [])
        tasks = TypeAdapter(list[RawTask]).validate_python(data)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError, ValidationError) as e:
        _fail(f"Invalid task file {task_file}: {e}")

    click.echo(json.dumps([_task_dict(t) for t in process_graph(tasks)], indent=2))
