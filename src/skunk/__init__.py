"""
skunk — YAML stack management.

Stacks reference reusable fragments (anchors) from a catalog directory
tree; skunk resolves them into one document.
"""

from skunk.errors import (
    SkunkError,
    FileReadError,
    DirectoryScanError,
    DecodeError,
    UnresolvedAnchorError,
    StackNotFoundError,
    ConfigError,
)
from skunk.yamlparser import (
    find_subdirectories,
    normalize_merge_keys,
    build_anchor_index,
    decode,
    resolve,
    merge_to_bytes,
)

__version__ = "0.1.0"

__all__ = [
    # merge engine
    "find_subdirectories",
    "normalize_merge_keys",
    "build_anchor_index",
    "decode",
    "resolve",
    "merge_to_bytes",
    # errors
    "SkunkError",
    "FileReadError",
    "DirectoryScanError",
    "DecodeError",
    "UnresolvedAnchorError",
    "StackNotFoundError",
    "ConfigError",
]
