"""Command-line front end for the Dockerfile generation backend.

Usage:
    dockergen generate https://github.com/org/repo --token "$GITHUB_TOKEN"
    dockergen generate https://github.com/org/repo -o Dockerfile
    dockergen status <generation-id>
    dockergen history --page 2
    dockergen push <generation-id> -m "Add Dockerfile"
    dockergen health

Configuration is read from the environment (and a ``.env`` file in the
working directory); see ``dockergen.core.config``.
"""

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv

from dockergen.api.client import GenerationClient
from dockergen.core.config import ClientConfig, ConfigValidationError, PollConfig
from dockergen.core.exceptions import DockergenError
from dockergen.polling.controller import PollController
from dockergen.polling.outcome import SessionOutcome, StatusUpdate, StopReason

logger = logging.getLogger("dockergen.cli")

app = typer.Typer(help="Generate Dockerfiles for GitHub repositories")


class ConsoleObserver:
    """Renders poll controller events to the terminal."""

    def __init__(self) -> None:
        self._last_stack: tuple[str, ...] = ()
        self._last_status = ""

    def on_status(self, update: StatusUpdate) -> None:
        status = update.latest.build_status.value
        if status != self._last_status:
            typer.echo(f"[{update.attempt:>3}] status: {status}")
            self._last_status = status
        observed = update.observed
        if observed is not None and observed.tech_stack and observed.tech_stack != self._last_stack:
            typer.echo(f"      tech stack: {', '.join(observed.tech_stack)}")
            self._last_stack = observed.tech_stack

    def on_stop(self, outcome: SessionOutcome) -> None:
        colour = typer.colors.GREEN if outcome.succeeded else typer.colors.YELLOW
        if outcome.is_error or outcome.reason is StopReason.FAILED:
            colour = typer.colors.RED
        typer.secho(
            f"{outcome.message} ({outcome.attempts} checks, {outcome.elapsed_s:.0f}s)",
            fg=colour,
            err=not outcome.succeeded,
        )


def _configure_logging() -> None:
    level = os.getenv("DOCKERGEN_LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def _load_client_config() -> ClientConfig:
    try:
        return ClientConfig.from_env()
    except (ConfigValidationError, ValueError) as exc:
        typer.secho(f"Configuration error: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(2) from exc


def _fail(exc: DockergenError) -> None:
    typer.secho(f"Error: {exc.message}", fg=typer.colors.RED, err=True)
    logger.debug("Command failed | error=%s", exc.to_error_dict())
    raise typer.Exit(1) from exc


@app.callback()
def main() -> None:
    """Load ``.env`` and configure logging before any command runs."""
    load_dotenv()
    _configure_logging()


async def _generate(
    github_url: str,
    token: str,
    client_config: ClientConfig,
    poll_config: PollConfig,
) -> SessionOutcome:
    async with GenerationClient(client_config) as client:
        controller = PollController(client, poll_config, observers=[ConsoleObserver()])
        job = await controller.start(github_url, token)
        typer.echo(f"Generation started: {job.generation_id}")
        try:
            return await controller.wait()
        finally:
            controller.stop()


@app.command()
def generate(
    github_url: str = typer.Argument(..., help="GitHub repository URL"),
    token: str = typer.Option(
        "",
        "--token",
        "-t",
        envvar="GITHUB_TOKEN",
        help="GitHub personal access token",
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Write the generated Dockerfile to this path",
    ),
) -> None:
    """Generate a Dockerfile and wait for the result."""
    client_config = _load_client_config()
    try:
        poll_config = PollConfig.from_env()
    except (ConfigValidationError, ValueError) as exc:
        typer.secho(f"Configuration error: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(2) from exc

    try:
        outcome = asyncio.run(_generate(github_url, token, client_config, poll_config))
    except DockergenError as exc:
        _fail(exc)
        return
    except KeyboardInterrupt:
        typer.secho("Generation stopped", fg=typer.colors.YELLOW, err=True)
        raise typer.Exit(130) from None

    status = outcome.status
    if status is not None and status.has_dockerfile:
        if output is not None:
            output.write_text(status.dockerfile, encoding="utf-8")
            typer.echo(f"Dockerfile written to {output}")
        else:
            typer.echo(status.dockerfile)
    if status is not None and status.error:
        typer.secho(f"Backend error: {status.error}", fg=typer.colors.RED, err=True)

    raise typer.Exit(0 if outcome.succeeded else 1)


@app.command()
def status(generation_id: str = typer.Argument(..., help="Generation identifier")) -> None:
    """Show the current status of a generation."""
    config = _load_client_config()

    async def _fetch() -> dict[str, object]:
        async with GenerationClient(config) as client:
            return (await client.fetch_status(generation_id)).to_dict()

    try:
        payload = asyncio.run(_fetch())
    except DockergenError as exc:
        _fail(exc)
        return
    typer.echo(json.dumps(payload, indent=2))


@app.command()
def history(
    page: int = typer.Option(1, "--page", "-p", help="Page number (1-based)"),
    limit: int = typer.Option(10, "--limit", "-n", help="Generations per page"),
) -> None:
    """List past generations."""
    config = _load_client_config()

    async def _fetch():
        async with GenerationClient(config) as client:
            return await client.get_history(page=page, limit=limit)

    try:
        result = asyncio.run(_fetch())
    except DockergenError as exc:
        _fail(exc)
        return

    total = f" of {result.total}" if result.total is not None else ""
    typer.echo(f"Page {result.page} ({len(result.items)} items{total})")
    for item in result.items:
        created = item.created_at.isoformat() if item.created_at else "-"
        typer.echo(f"{item.generation_id}  {item.build_status.value:<8}  {created}  {item.github_url}")


@app.command()
def push(
    generation_id: str = typer.Argument(..., help="Generation identifier"),
    message: Optional[str] = typer.Option(None, "--message", "-m", help="Commit message"),
) -> None:
    """Commit a generated Dockerfile to its repository."""
    config = _load_client_config()

    async def _push():
        async with GenerationClient(config) as client:
            return await client.push_artifact(generation_id, message)

    try:
        result = asyncio.run(_push())
    except DockergenError as exc:
        _fail(exc)
        return
    typer.secho(result.message or "Dockerfile pushed", fg=typer.colors.GREEN)


@app.command()
def health() -> None:
    """Check whether the backend is reachable."""
    config = _load_client_config()

    async def _check() -> bool:
        async with GenerationClient(config) as client:
            return await client.check_health()

    if asyncio.run(_check()):
        typer.secho(f"Backend healthy: {config.health_url}", fg=typer.colors.GREEN)
        return
    typer.secho(f"Backend unreachable: {config.health_url}", fg=typer.colors.RED, err=True)
    raise typer.Exit(1)


if __name__ == "__main__":
    app()
