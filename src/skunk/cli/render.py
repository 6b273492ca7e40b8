"""
skunk.cli.render — Terminal colours for table output.

    color = resolve_color(no_color)
    click.echo(header("NAME", color), color=color)
    click.echo(colorize_value(42, color), color=color)

Colour is decided once per command:
  --no-color        → off
  NO_COLOR set      → off
  CLICOLOR_FORCE    → on
  otherwise         → click decides (on for a TTY)
"""

import json
import os

import click

# 256-colour palette indexes
HEADER = 99
MUTED = 245
STRING = 149
NUMBER = 170
TRUE = 76
FALSE = 203
NULL = 245
MAP = 105
ARRAY = 39


def resolve_color(no_color=False):
    """Colour setting to pass as ``color=`` to click.echo (None means auto)."""
    if no_color or os.environ.get("NO_COLOR"):
        return False
    if os.environ.get("CLICOLOR_FORCE"):
        return True
    return None


def style(text, fg, color, bold=False):
    if color is False:
        return text
    return click.style(text, fg=fg, bold=bold)


def header(text, color):
    return style(text, HEADER, color, bold=True)


def rule(width, color):
    return style("─" * width, HEADER, color)


def muted(text, color):
    return style(text, MUTED, color)


def format_value(value):
    """Plain table rendering of a YAML value."""
    if isinstance(value, (dict, list)):
        return json.dumps(value, sort_keys=True, default=str)
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def colorize_value(value, color):
    """format_value() coloured by the value's type."""
    text = format_value(value)
    if isinstance(value, dict):
        fg = MAP
    elif isinstance(value, list):
        fg = ARRAY
    elif value is None:
        fg = NULL
    elif isinstance(value, bool):
        fg = TRUE if value else FALSE
    elif isinstance(value, (int, float)):
        fg = NUMBER
    else:
        fg = STRING
    return style(text, fg, color)
