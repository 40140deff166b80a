"""
Styled terminal output for the servicebay CLI, built on click.

All output respects NO_COLOR / TERM=dumb through ``click.style``.
"""

import shutil
from typing import Optional

import click


_L_H    = "─"     # ─
_BULLET = "•"     # •
_CHECK  = "✓"     # ✓
_CROSS  = "✗"     # ✗


def _tw() -> int:
    """Terminal width, clamped to a sane range."""
    return max(40, min(shutil.get_terminal_size((80, 24)).columns, 120))


def success(message: str) -> None:
    """Print success message in green."""
    click.echo(click.style(message, fg="green"))


def error(message: str) -> None:
    """Print error message in red (to stderr)."""
    click.echo(click.style(message, fg="red"), err=True)


def warning(message: str) -> None:
    """Print warning message in yellow."""
    click.echo(click.style(message, fg="yellow"))


def info(message: str) -> None:
    """Print info message in cyan."""
    click.echo(click.style(message, fg="cyan"))


def dim(message: str) -> None:
    click.echo(click.style(message, dim=True))


def section(title: str, *, width: Optional[int] = None, fg: str = "cyan") -> None:
    """
    Print a section header with a ruled line.

        ── Services ───────────────────────────────
    """
    w = width or _tw()
    dashes = max(4, w - len(title) - 6)
    click.echo(click.style(f"{_L_H}{_L_H} {title} {_L_H * dashes}", fg=fg, bold=True))


def kv(key: str, value: object, *, key_width: int = 20, indent: int = 2) -> None:
    """
    Print an aligned key-value pair.

        Services:           3
    """
    padding = " " * max(1, key_width - len(key) - 1)
    click.echo(f"{' ' * indent}{click.style(key + ':', fg='white')}{padding}{click.style(str(value), fg='cyan')}")


def bullet(text: str, *, indent: int = 2, fg: str = "white") -> None:
    click.echo(f"{' ' * indent}{click.style(_BULLET, fg=fg)} {text}")
