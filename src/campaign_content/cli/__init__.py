"""Command line surface over the generation core.

- app: Typer app and logging setup
- commands: run / validate
- parsers: plan YAML -> models
- console: shared rich console

Usage:
    campaign-content validate plan.yaml
    campaign-content run plan.yaml --config config/providers.yaml --output output
"""

from .app import app, main

__all__ = ["app", "main"]
