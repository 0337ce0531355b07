"""CLI commands - thin wrappers over the generation core."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError
from rich.status import Status

from ..constants import RunStatus
from ..content import GenerationOrchestrator, GenerationProgress, StrategyFactory
from ..providers import EnvSettings, ProviderConfig, create_services, load_provider_config
from ..services import (
    ErrorMetrics,
    GenerationInProgressError,
    JsonPublicationStore,
    ProgressTracker,
    ProviderConfigurationError,
    RetryManager,
    StrategyConfigurationError,
)
from .console import console, format_progress, print_error, show_plan_check, show_run_result
from .parsers import CampaignPlan, load_plan


def _load_plan_or_exit(plan_path: Path) -> CampaignPlan:
    try:
        return load_plan(plan_path)
    except FileNotFoundError:
        print_error(f"Plan file not found: {plan_path}")
    except (ValueError, ValidationError) as e:
        print_error("Invalid plan file", {"file": plan_path, "reason": e})
    raise typer.Exit(1)


async def _run_plan(plan: CampaignPlan, config: ProviderConfig, output_dir: Path) -> tuple[GenerationProgress, list[Path]]:
    services = create_services(config)
    store = JsonPublicationStore(output_dir)
    settings = config.generation

    with Status("Starting...", console=console) as status:
        async def on_progress(progress: GenerationProgress) -> None:
            status.update(format_progress(progress))

        orchestrator = GenerationOrchestrator(
            text_service=services.text,
            publication_store=store,
            image_service=services.image,
            fallback_text_service=services.fallback_text,
            fallback_image_service=services.fallback_image,
            tracker=ProgressTracker(callback=on_progress),
            retry_manager=RetryManager(default_config=settings.to_retry_config(), metrics=ErrorMetrics()),
            strategy_config=settings.to_strategy_config(),
        )
        try:
            progress = await orchestrator.run_campaign(
                plan.campaign_id,
                plan.items,
                plan.brand,
                plan.assets,
                plan.templates,
            )
        finally:
            await services.close()

    return progress, store.list_saved(plan.campaign_id)


def run(
    plan_path: Path = typer.Argument(..., help="Plan YAML file"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Provider configuration YAML"),
    output_dir: Optional[Path] = typer.Option(None, "--output", "-o", help="Output directory"),
) -> None:
    """Generate every item of a campaign plan."""
    plan = _load_plan_or_exit(plan_path)
    if not plan.items:
        console.print(f"[yellow]Warning: Plan {plan.campaign_id} has no items[/yellow]")
        return

    config = load_provider_config(config_path)
    output_dir = output_dir or EnvSettings().output_dir

    try:
        progress, saved = asyncio.run(_run_plan(plan, config, output_dir))
    except ProviderConfigurationError as e:
        print_error(str(e), {"config": config_path or "default"})
        raise typer.Exit(1)
    except (StrategyConfigurationError, GenerationInProgressError) as e:
        print_error(str(e))
        raise typer.Exit(1)

    show_run_result(progress, saved)
    if progress.status == RunStatus.FAILED:
        raise typer.Exit(1)


def validate(
    plan_path: Path = typer.Argument(..., help="Plan YAML file"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Provider configuration YAML"),
) -> None:
    """Check a plan against the configured providers without generating anything."""
    plan = _load_plan_or_exit(plan_path)
    config = load_provider_config(config_path)
    has_image_service = bool(config.get_enabled_image_providers())

    rows: list[tuple[str, str, str, str, float | None]] = []
    for item in plan.items:
        try:
            strategy_class = StrategyFactory.resolve(item.content_type, has_image_service)
        except StrategyConfigurationError as e:
            rows.append((item.id, item.platform.value, item.content_type.value, str(e), None))
            continue
        rows.append((
            item.id,
            item.platform.value,
            item.content_type.value,
            strategy_class.__name__,
            strategy_class.estimated_seconds,
        ))

    show_plan_check(plan.campaign_id, rows)
    if any(seconds is None for *_, seconds in rows):
        raise typer.Exit(1)
