"""Helpers shared by the stack commands."""

import sys

import click

from skunk.config import Settings
from skunk.stack.filters import filter_stacks, find_duplicate_stacks
from skunk.stack.finder import StackMetadata, find_stacks


def load_stacks(settings: Settings, filters) -> list[StackMetadata]:
    """Discover stacks, abort on duplicate names, apply filters."""
    stacks = find_stacks(settings.stacks_path)

    duplicates = find_duplicate_stacks(stacks)
    if duplicates:
        for name, files in sorted(duplicates.items()):
            click.echo(
                f"Error: duplicate stack '{name}' in [{', '.join(files)}]. "
                f"Stacks must have unique names.",
                err=True,
            )
        sys.exit(1)

    if filters:
        stacks = filter_stacks(stacks, list(filters))
    return stacks
