"""
skunk.cli.show_cmd — skunk show command.

  skunk show -s dev                   — Components of a stack
  skunk show -f env=dev               — First stack matching the filters
  skunk show -s dev -c vpc            — Variables of a component
  skunk show -s dev -c vpc --tfvars   — Variables as Terraform .tfvars
"""

import json
import logging
import sys
from pathlib import Path

import click

from skunk.cli._common import load_stacks
from skunk.cli.render import colorize_value, header, muted, resolve_color, rule
from skunk.errors import SkunkError
from skunk.stack.components import (
    extract_component_vars,
    extract_components,
    find_component,
    format_tfvars,
)
from skunk.yamlparser.parser import resolve

logger = logging.getLogger(__name__)


@click.command("show")
@click.option("-s", "--stack", "--stackName", "stack_name", default=None,
              help="Stack name (metadata.name)")
@click.option("-f", "--filter", "filters", multiple=True,
              help="Stack filter; the first match is shown")
@click.option("-c", "--component", "component_name", default=None,
              help="Show the variables of this component")
@click.option("--catalog", "catalog_dir", default=None,
              help="Catalog directory (default: catalogDir from config)")
@click.option("--json", "as_json", is_flag=True, default=False,
              help="Output as JSON")
@click.option("--tfvars", is_flag=True, default=False,
              help="Output component variables in Terraform format (requires --component)")
@click.option("--no-color", is_flag=True, default=False,
              help="Disable colored output")
@click.pass_obj
def show_cmd(settings, stack_name, filters, component_name, catalog_dir,
             as_json, tfvars, no_color):
    """Show the components of a stack, or the variables of one component."""
    if not stack_name and not filters:
        _fail("either a stack name or a filter is required. Use --stack/-s or --filter/-f")
    if tfvars and not component_name:
        _fail("--tfvars can only be used with --component")

    stacks = load_stacks(settings, filters)

    if stack_name:
        target = next((s for s in stacks if s.name == stack_name), None)
        if target is None:
            _fail(f"stack with name '{stack_name}' not found")
    else:
        if not stacks:
            click.echo("No stacks match the specified filters.", err=True)
            return
        target = stacks[0]
        logger.info("Selected stack '%s' based on filter criteria", target.name)

    try:
        tree = resolve(target.file_path, catalog_dir or settings.catalog_dir)
    except SkunkError as e:
        _fail(str(e))

    components = extract_components(tree)
    if not components:
        click.echo(f"No components found in stack '{target.name}'.", err=True)
        return

    color = resolve_color(no_color)
    if component_name is None:
        _print_components(components, as_json, color)
        return

    component = find_component(components, component_name)
    if component is None:
        _fail(f"component with name '{component_name}' not found in stack '{target.name}'")

    try:
        variables = extract_component_vars(tree, component.type, component.name)
    except SkunkError as e:
        _fail(str(e))

    if not variables:
        click.echo(
            f"No variables found for component '{component_name}' in stack '{target.name}'.",
            err=True,
        )
        return

    if tfvars:
        click.echo(format_tfvars(variables, Path(target.file_path).name, component_name), nl=False)
    elif as_json:
        click.echo(json.dumps(
            [{"name": v.name, "value": v.value} for v in variables],
            indent=2,
            default=str,
        ))
    else:
        click.echo(f"Component: {component.type}/{component.name}")
        click.echo(header(f"{'VARIABLE':<30} {'VALUE'}", color), color=color)
        click.echo(rule(80, color), color=color)
        for v in variables:
            click.echo(f"{v.name:<30} {colorize_value(v.value, color)}", color=color)


def _print_components(components, as_json, color):
    if as_json:
        click.echo(json.dumps(
            [{"type": c.type, "name": c.name} for c in components],
            indent=2,
        ))
        return

    click.echo(header(f"{'TYPE':<20} {'NAME'}", color), color=color)
    click.echo(rule(60, color), color=color)
    for c in components:
        click.echo(f"{muted(f'{c.type:<20}', color)} {c.name}", color=color)


def _fail(message):
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)
