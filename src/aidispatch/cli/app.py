"""
Main Typer application for the aidispatch CLI.

Usage:
    aidispatch send "Your prompt" --model openai/gpt-5-nano
    aidispatch status
    aidispatch models
    aidispatch health --model claude-3-haiku
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Annotated

import httpx
import typer
from rich.logging import RichHandler

from aidispatch import __version__
from aidispatch.cli.output import (
    console,
    print_error,
    print_health,
    print_info,
    print_response,
    print_success,
    print_table,
    print_warning,
)
from aidispatch.config import ConfigurationError, DispatchConfig, load_config
from aidispatch.providers import AIRequest, AIResponse, HealthStatus, ProviderHealth, ProviderManager

app = typer.Typer(
    name="aidispatch",
    help="Send prompts to AI providers with ordered fallback.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    pretty_exceptions_enable=True,
    pretty_exceptions_show_locals=False,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        print_info(f"aidispatch version {__version__}")
        raise typer.Exit()


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False, markup=False)],
        force=True,
    )


# noinspection PyUnusedLocal
@app.callback()
def main_callback(
    ctx: typer.Context,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
    config_path: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to a YAML config file.",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable debug logging.",
        ),
    ] = False,
) -> None:
    """
    [bold blue]aidispatch[/bold blue] - multi-provider AI dispatch

    Providers are enabled by their API key environment variables
    (OPENROUTER_API_KEY, ANTHROPIC_API_KEY by default).
    """
    _setup_logging(verbose)
    ctx.obj = {"config_path": config_path}


def _load(ctx: typer.Context) -> DispatchConfig:
    config_path = (ctx.obj or {}).get("config_path")
    try:
        return load_config(config_path)
    except ConfigurationError as e:
        print_error(str(e))
        raise typer.Exit(1)


def _build_manager(config: DispatchConfig) -> ProviderManager:
    return ProviderManager(config, client=httpx.AsyncClient())


async def _send(config: DispatchConfig, request: AIRequest) -> AIResponse:
    async with _build_manager(config) as manager:
        return await manager.send(request)


async def _health(config: DispatchConfig, model: str | None) -> ProviderHealth:
    async with _build_manager(config) as manager:
        return await manager.health_check(model)


@app.command()
def send(
    ctx: typer.Context,
    prompt: Annotated[
        str,
        typer.Argument(help="Prompt text to send."),
    ],
    model: Annotated[
        str | None,
        typer.Option("--model", "-m", help="Model identifier (defaults to config)."),
    ] = None,
    max_tokens: Annotated[
        int | None,
        typer.Option("--max-tokens", help="Maximum output tokens."),
    ] = None,
    temperature: Annotated[
        float | None,
        typer.Option("--temperature", "-t", help="Sampling temperature."),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output the full response as JSON."),
    ] = False,
) -> None:
    """Send a prompt through the fallback chain."""
    config = _load(ctx)
    request = AIRequest(
        prompt=prompt,
        model=model or config.default_model,
        max_tokens=max_tokens,
        temperature=temperature,
    )

    response = asyncio.run(_send(config, request))

    if json_output:
        typer.echo(json.dumps(response.model_dump(), indent=2))
    else:
        print_response(response)

    if not response.success:
        raise typer.Exit(1)


@app.command()
def status(ctx: typer.Context) -> None:
    """Show configured providers and which are enabled."""
    config = _load(ctx)
    manager = ProviderManager(config)
    enabled = {s.name: s for s in manager.get_provider_status()}

    rows = []
    for settings in sorted(config.providers.values(), key=lambda s: s.priority):
        if settings.name in enabled:
            state = "enabled"
        elif settings.enabled:
            state = f"disabled ({settings.api_key_env} not set)"
        else:
            state = "disabled"

        rows.append(
            [
                settings.name,
                settings.priority,
                state,
                len(settings.models),
                f"{settings.timeout_seconds:g}s",
            ]
        )

    print_table(["Provider", "Priority", "State", "Models", "Timeout"], rows, title="Providers")

    if not enabled:
        print_warning("No AI providers available")
    else:
        print_success(f"{len(enabled)} provider(s) enabled, default model: {config.default_model}")


@app.command()
def models(ctx: typer.Context) -> None:
    """List servable models and their fallback chains."""
    config = _load(ctx)
    manager = ProviderManager(config)

    available = manager.get_available_models()
    if not available:
        print_warning("No models available - no provider has an API key configured")
        return

    rows = [[m, " -> ".join(manager.registry.eligible(m))] for m in available]
    print_table(["Model", "Fallback chain"], rows, title="Available models")


@app.command()
def health(
    ctx: typer.Context,
    model: Annotated[
        str | None,
        typer.Option("--model", "-m", help="Model to test (defaults to config)."),
    ] = None,
) -> None:
    """Send a tiny test request and report connectivity."""
    config = _load(ctx)
    result = asyncio.run(_health(config, model))

    print_health(result)
    if result.status != HealthStatus.HEALTHY:
        raise typer.Exit(1)
