"""
skunk.cli.merge_cmd — skunk merge command.

  skunk merge stacks/dev.yaml                    — Print the merged stack
  skunk merge stacks/dev.yaml -o merged.yaml     — Write it to a file
"""

import sys

import click

from skunk.errors import SkunkError
from skunk.yamlparser.parser import merge_to_bytes


@click.command("merge")
@click.argument("stack_file", type=click.Path(dir_okay=False))
@click.option("--catalog", "catalog_dir", default=None,
              help="Catalog directory (default: catalogDir from config)")
@click.option("-o", "--output", default=None,
              help="Output file (default: stdout)")
@click.pass_obj
def merge_cmd(settings, stack_file, catalog_dir, output):
    """Resolve a stack against the catalog and print it as YAML."""
    try:
        data = merge_to_bytes(stack_file, catalog_dir or settings.catalog_dir)
    except SkunkError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if output:
        with open(output, "wb") as f:
            f.write(data)
        click.echo(f"Written to {output}", err=True)
    else:
        click.echo(data.decode("utf-8"), nl=False)
