"""CLI entry point using Click."""

from __future__ import annotations

import asyncio
import logging
import os
import sys
import time

import click

from agentflow import __version__
from agentflow.config import AppConfig, FlowConfig, load_config, load_flow_config
from agentflow.errors import AgentError
from agentflow.flow.loader import build_llm, create_flow_from_config

logger = logging.getLogger(__name__)

RESULT_BANNER = "\n===== RESULT =====\n"
EXIT_WORDS = ("exit", "quit")


def _configure_logging(debug: bool) -> None:
    level_name = "DEBUG" if debug else os.environ.get("LOG_LEVEL", "INFO").upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level = logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


async def _run_flow(flow_config: FlowConfig, app_config: AppConfig, prompt: str) -> str:
    flow = create_flow_from_config(flow_config, app_config, llm_factory=build_llm)
    return await flow.execute(prompt)


def _execute(flow_config: FlowConfig, app_config: AppConfig, prompt: str) -> bool:
    """Run one prompt through a fresh flow and print the result."""
    start = time.monotonic()
    try:
        result = asyncio.run(_run_flow(flow_config, app_config, prompt))
    except AgentError as e:
        click.echo(f"Execution failed: {e}", err=True)
        return False
    click.echo(RESULT_BANNER)
    click.echo(result)
    logger.info("Execution completed in %.2f seconds", time.monotonic() - start)
    return True


@click.command()
@click.option("--config", "config_path", type=click.Path(dir_okay=False), default=None,
              help="JSON or YAML file with `llm` settings and/or a flow description")
@click.option("--prompt", default=None, help="Run a single prompt and exit")
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--version", is_flag=True, help="Show version and exit")
def main(config_path: str | None, prompt: str | None, debug: bool, version: bool) -> None:
    """Agentflow - plan-driven multi-agent flows.

    Run with --prompt for a single request, or without it for a REPL.
    """
    if version:
        click.echo(f"agentflow {__version__}")
        return

    try:
        app_config = load_config(config_path)
        flow_config = load_flow_config(config_path)
    except AgentError as e:
        click.echo(f"Failed to load config file: {e}", err=True)
        sys.exit(1)

    _configure_logging(debug or app_config.debug)

    if prompt:
        logger.info("Running flow with prompt: %s", prompt)
        if not _execute(flow_config, app_config, prompt):
            sys.exit(1)
        return

    click.echo("Agentflow CLI")
    click.echo('Type your prompt or "exit" to quit')
    while True:
        click.echo("\n> ", nl=False)
        line = sys.stdin.readline()
        if not line:
            break
        text = line.strip()
        if text.lower() in EXIT_WORDS:
            break
        if not text:
            continue
        logger.info("Executing flow...")
        _execute(flow_config, app_config, text)
    click.echo("\nGoodbye!")
