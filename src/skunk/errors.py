"""
skunk.errors — Error taxonomy.

Every failure in the merge engine is deterministic (a function of the
files on disk), so nothing here is retried. Errors carry the file they
originate from; the orchestrator fills in the stack file and catalog
root when they pass through it.
"""

from __future__ import annotations

from pathlib import Path


class SkunkError(Exception):
    """Base error."""

    def __init__(
        self,
        message: str,
        path: str | Path | None = None,
        catalog_dir: str | Path | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.path = path
        self.catalog_dir = catalog_dir

    def __str__(self) -> str:
        context = []
        if self.path is not None:
            context.append(f"file: {self.path}")
        if self.catalog_dir is not None:
            context.append(f"catalog: {self.catalog_dir}")
        if not context:
            return self.message
        return f"{self.message} ({', '.join(context)})"


class FileReadError(SkunkError):
    """Stack or catalog file could not be read."""
    pass


class DirectoryScanError(SkunkError):
    """Catalog root missing or unreadable."""
    pass


class DecodeError(SkunkError):
    """Text is not valid YAML, or a merge key is not mergeable."""
    pass


class UnresolvedAnchorError(DecodeError):
    """An alias names an anchor defined nowhere in the reference set."""

    def __init__(
        self,
        anchor: str,
        path: str | Path | None = None,
        catalog_dir: str | Path | None = None,
        line: int | None = None,
    ):
        message = f"found undefined alias '{anchor}'"
        if line is not None:
            message += f" at line {line}"
        super().__init__(message, path=path, catalog_dir=catalog_dir)
        self.anchor = anchor
        self.line = line


class StackNotFoundError(SkunkError):
    """Requested stack, component or section does not exist."""
    pass


class ConfigError(SkunkError):
    """Invalid configuration file or setting."""
    pass
