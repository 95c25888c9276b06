"""Typer CLI definition for reviewgen."""

import asyncio
import json
import logging
from dataclasses import replace

import typer

from . import config as config_file
from .config import ConfigManager, HybridConfig, generate_config, load_config
from .core import HybridGenerator
from .models import GenerationRequest, GenerationResult
from .templates import TemplateGenerator

app = typer.Typer(help="Generate hotel reviews with provider, template and cache fallback")


def configure_logging(debug: bool) -> None:
    if debug:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        )


async def run_generation(
    request: GenerationRequest, config: HybridConfig
) -> GenerationResult:
    """Run one request through a short-lived generator."""
    async with HybridGenerator(config) as generator:
        return await generator.generate(request)


async def probe_providers(manager: ConfigManager) -> dict[str, bool]:
    return await manager.check_availability()


@app.command()
def generate(
    subject: str = typer.Argument(..., help="Name of the hotel to review"),
    rating: int = typer.Option(5, "-r", "--rating", help="Star rating from 1 to 5"),
    trip_type: str = typer.Option(
        "leisure",
        "-t",
        "--trip-type",
        help="business, leisure, family, romance or vacation",
    ),
    highlight: list[str] = typer.Option(
        [], "-H", "--highlight", help="Aspect to mention (repeatable)"
    ),
    nights: int = typer.Option(3, "-n", "--nights", help="Length of stay in nights"),
    guests: int = typer.Option(2, "-g", "--guests", help="Number of guests"),
    language: str = typer.Option("en", "-l", "--language", help="Review language code"),
    voice: str = typer.Option(
        "friendly",
        "-v",
        "--voice",
        help="professional, friendly, enthusiastic or detailed",
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the full result as JSON"),
    no_cache: bool = typer.Option(False, "--no-cache", help="Disable the review cache"),
    debug: bool = typer.Option(
        False, "--debug", help="Show verbose error messages and tier decisions"
    ),
) -> None:
    """Generate a review for SUBJECT."""
    configure_logging(debug)

    try:
        request = GenerationRequest(
            subject_name=subject,
            rating=rating,
            trip_type=trip_type,  # type: ignore[arg-type]
            highlights=tuple(highlight),
            stay_length=nights,
            guest_count=guests,
            language=language,
            voice=voice,  # type: ignore[arg-type]
        )
    except ValueError as e:
        if debug:
            typer.echo(f"Debug - Invalid request: {e!r}", err=True)
        else:
            typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None

    config = load_config()
    if no_cache:
        config = replace(config, cache=replace(config.cache, enabled=False))

    try:
        result = asyncio.run(run_generation(request, config))
    except Exception as e:
        if debug:
            typer.echo(f"Debug - Unexpected error: {e!r}", err=True)
        else:
            typer.echo("Error: An unexpected error occurred", err=True)
        raise typer.Exit(1) from None

    if as_json:
        typer.echo(json.dumps(result.to_dict(), indent=2))
        return

    typer.echo(result.text)
    if debug:
        typer.echo(
            f"Debug - source={result.source} provider={result.provider} "
            f"latency={result.latency_ms}ms cost=${result.cost:.6f}",
            err=True,
        )


@app.command()
def probe(
    debug: bool = typer.Option(False, "--debug", help="Show verbose error messages"),
) -> None:
    """Check which providers answer through the configured proxy."""
    configure_logging(debug)
    manager = ConfigManager(load_config())
    typer.echo(f"Proxy: {manager.get_proxy_config().url}")

    try:
        availability = asyncio.run(probe_providers(manager))
    except Exception as e:
        if debug:
            typer.echo(f"Debug - Probe failed: {e!r}", err=True)
        else:
            typer.echo(f"Error: Probe failed: {e}", err=True)
        raise typer.Exit(1) from None

    for name, available in availability.items():
        mark = "✓" if available else "✗"
        typer.echo(f"{mark} {name}")


@app.command("init-config")
def init_config(
    force: bool = typer.Option(False, "--force", help="Overwrite an existing config"),
) -> None:
    """Write the default config file."""
    existing = config_file.CONFIG_PATH
    if existing.exists() and not force:
        typer.echo(f"Config already exists at {existing} (use --force to overwrite)")
        raise typer.Exit(0)
    path = generate_config()
    typer.echo(f"Config written to {path}")


@app.command()
def highlights() -> None:
    """List the highlight keys the template generator knows."""
    for item in TemplateGenerator().get_available_highlights():
        typer.echo(f"{item['key']}: {item['label']}")
