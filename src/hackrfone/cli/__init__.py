"""CLI entry points for hackrfone."""

from hackrfone.cli.main import info, rx

__all__ = ["info", "rx"]
