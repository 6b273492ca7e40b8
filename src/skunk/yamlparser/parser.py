"""
skunk.yamlparser.parser — Stack merge entry points.

    tree = resolve("stacks/dev.yaml", "catalog")
    data = merge_to_bytes("stacks/dev.yaml", "catalog")

Pipeline:
  catalog root → directory set → anchor index
  stack file   → normalized text → decoded tree (→ YAML bytes)

Nothing is cached between calls; each call reflects the files on disk.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from skunk.errors import DecodeError, FileReadError, SkunkError
from skunk.yamlparser.decoder import build_anchor_index, decode
from skunk.yamlparser.normalizer import normalize_merge_keys
from skunk.yamlparser.scanner import find_subdirectories

logger = logging.getLogger(__name__)


class ExpandedDumper(yaml.SafeDumper):
    """SafeDumper that writes shared values out in full, never as aliases."""

    def ignore_aliases(self, data):
        return True


def resolve(stack_file: str | Path, catalog_dir: str | Path) -> dict[str, Any]:
    """Resolve a stack file against a catalog.

    Args:
        stack_file: Stack YAML file
        catalog_dir: Catalog root; the root and all nested directories
            are searched for anchors

    Returns:
        Fully resolved document tree

    Raises:
        DirectoryScanError: Catalog root missing or unreadable
        FileReadError: Stack or catalog file unreadable
        DecodeError: Invalid YAML or merge value
        UnresolvedAnchorError: Alias not defined anywhere
    """
    stack_path = Path(stack_file)
    try:
        text = _read_stack(stack_path)

        reference_dirs = find_subdirectories(catalog_dir)
        logger.debug("Scanning %d catalog director(ies) under %s", len(reference_dirs), catalog_dir)

        anchors = build_anchor_index(reference_dirs, exclude=[stack_path])
        return decode(normalize_merge_keys(text), anchors, path=stack_path)
    except SkunkError as e:
        if e.path is None:
            e.path = stack_path
        if e.catalog_dir is None:
            e.catalog_dir = catalog_dir
        raise


def merge_to_bytes(stack_file: str | Path, catalog_dir: str | Path) -> bytes:
    """Resolve a stack file and serialize it as YAML.

    Keys are sorted and every alias is expanded, so the output can be
    read back by any YAML reader without the catalog.
    """
    merged = resolve(stack_file, catalog_dir)
    if _has_cycle(merged):
        raise DecodeError(
            "recursive alias cannot be expanded",
            path=Path(stack_file),
            catalog_dir=catalog_dir,
        )
    return dump_yaml(merged)


def dump_yaml(data: Any) -> bytes:
    """Serialize a tree to canonical YAML bytes."""
    return yaml.dump(
        data,
        Dumper=ExpandedDumper,
        default_flow_style=False,
        sort_keys=True,
        allow_unicode=True,
        encoding="utf-8",
    )


def _has_cycle(data: Any, ancestors: frozenset[int] = frozenset()) -> bool:
    """True if a container holds itself somewhere below it."""
    if not isinstance(data, (dict, list)):
        return False
    if id(data) in ancestors:
        return True
    ancestors = ancestors | {id(data)}
    children = data.values() if isinstance(data, dict) else data
    return any(_has_cycle(child, ancestors) for child in children)


def _read_stack(path: Path) -> str:
    if not path.exists():
        raise FileReadError(f"Stack file not found: {path}", path=path)
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise FileReadError(f"failed to read YAML file {path}: {e}", path=path) from e
