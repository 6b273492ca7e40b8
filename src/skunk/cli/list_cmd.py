"""skunk.cli.list_cmd — skunk list command."""

import json

import click

from skunk.cli._common import load_stacks
from skunk.cli.render import header, muted, resolve_color, rule


@click.command("list")
@click.option("-f", "--filter", "filters", multiple=True,
              help="Stack filter (name=glob, key=value, /regex/, ...)")
@click.option("--json", "as_json", is_flag=True, default=False,
              help="Output as JSON")
@click.option("--no-color", is_flag=True, default=False,
              help="Disable colored output")
@click.pass_obj
def list_cmd(settings, filters, as_json, no_color):
    """List stacks found under stacksPath."""
    stacks = load_stacks(settings, filters)

    if not stacks:
        click.echo("No stacks found.", err=True)
        return

    if as_json:
        click.echo(json.dumps(
            [{"name": s.name, "labels": s.labels, "file": s.file_path} for s in stacks],
            indent=2,
        ))
        return

    color = resolve_color(no_color)
    click.echo(header(f"{'NAME':<30} {'LABELS':<40} {'FILE'}", color), color=color)
    click.echo(rule(100, color), color=color)
    for s in stacks:
        labels = ",".join(f"{k}={v}" for k, v in sorted(s.labels.items()))
        click.echo(f"{s.name:<30} {muted(f'{labels:<40}', color)} {s.file_path}", color=color)
