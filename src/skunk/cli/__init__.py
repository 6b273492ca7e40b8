"""
skunk.cli — CLI entry point.

Commands:
  skunk list [-f filter]              — List stacks
  skunk show -s <stack> [-c comp]     — Stack components / component vars
  skunk merge <stack.yaml>            — Resolved stack as YAML
"""

import sys

import click

from skunk.cli.list_cmd import list_cmd
from skunk.cli.merge_cmd import merge_cmd
from skunk.cli.show_cmd import show_cmd
from skunk.config import load_settings
from skunk.errors import ConfigError
from skunk.log import configure_logging


@click.group()
@click.version_option(package_name="skunk")
@click.option("--config", "config_file", default=None,
              help="Config file (default: ./skunk.yaml)")
@click.option("--log-level", default=None,
              help="Log level (debug, info, warn, error)")
@click.pass_context
def main(ctx, config_file, log_level):
    """skunk — YAML stacks with catalog anchors."""
    try:
        settings = load_settings(config_file)
        if log_level:
            settings.log_level = log_level
        configure_logging(settings.log_level)
    except ConfigError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    ctx.obj = settings


main.add_command(list_cmd, "list")
main.add_command(show_cmd, "show")
main.add_command(merge_cmd, "merge")
