"""CLI entry point for ptybridge."""

from __future__ import annotations

import asyncio
import dataclasses
import logging
import sys

import typer

from ptybridge.diagnostics import set_debug
from ptybridge.errors import SessionError
from ptybridge.launcher import open_session
from ptybridge.provider.environment import classify, current_facts
from ptybridge.provider.registry import get_descriptor
from ptybridge.provider.resolver import ProviderResolver
from ptybridge.session.base import SessionConfig

app = typer.Typer(
    name="ptybridge",
    help="Spawn pseudo-terminal sessions, falling back to plain child processes.",
    no_args_is_help=True,
)


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    if verbose:
        set_debug(True)


@app.command()
def info(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug diagnostics."),
) -> None:
    """Show the detected environment and which provider would be used."""
    setup_logging(verbose)
    facts = current_facts()
    typer.echo(f"Platform: {facts.platform}")
    typer.echo(f"Machine: {facts.machine or 'unknown'}")
    typer.echo(f"Termux: {'yes' if facts.is_termux else 'no'}")
    typer.echo(f"Force fallback: {'yes' if facts.force_fallback else 'no'}")

    candidates = classify(facts=facts)
    typer.echo(f"Candidates: {', '.join(candidates) if candidates else '(none)'}")

    resolution = asyncio.run(ProviderResolver(facts=facts).resolve())
    if resolution is None:
        typer.echo("Provider: fallback (child process, no resize)")
    else:
        descriptor = get_descriptor(resolution.provider_name)
        target = f" ({descriptor.target})" if descriptor else ""
        typer.echo(f"Provider: {resolution.provider_name}{target}")


async def _run_session(command: str, args: list[str], config: SessionConfig, fallback: bool) -> int:
    facts = current_facts()
    if fallback:
        facts = dataclasses.replace(facts, force_fallback=True)
    loop = asyncio.get_running_loop()
    exited: asyncio.Future[tuple[int, int]] = loop.create_future()

    def _on_data(data: str) -> None:
        sys.stdout.write(data)
        sys.stdout.flush()

    def _on_exit(code: int, sig: int) -> None:
        if not exited.done():
            exited.set_result((code, sig))

    session = await open_session(command, args, config, resolver=ProviderResolver(facts=facts))
    session.on_data(_on_data)
    session.on_exit(_on_exit)
    code, sig = await exited
    return 128 + sig if sig else code


@app.command(context_settings={"allow_extra_args": True, "ignore_unknown_options": True})
def run(
    command: str = typer.Argument(help="Executable to run."),
    args: list[str] = typer.Argument(None, help="Arguments passed to the command."),
    cols: int | None = typer.Option(None, "--cols", help="Initial terminal width."),
    rows: int | None = typer.Option(None, "--rows", help="Initial terminal height."),
    cwd: str | None = typer.Option(None, "--cwd", help="Working directory."),
    fallback: bool = typer.Option(
        False, "--fallback", "-f", help="Skip native providers and use a plain child process."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug diagnostics."),
) -> None:
    """Run a command in a session and stream its output."""
    setup_logging(verbose)
    config = SessionConfig(columns=cols, rows=rows, cwd=cwd)
    try:
        exit_code = asyncio.run(_run_session(command, list(args or []), config, fallback))
    except SessionError as e:
        typer.echo(f"Error: {e} ({e.kind.value})", err=True)
        raise typer.Exit(1)
    raise typer.Exit(exit_code)


if __name__ == "__main__":
    app()
