"""skunk.yamlparser — Stack merge engine."""

from skunk.yamlparser.scanner import find_subdirectories
from skunk.yamlparser.normalizer import normalize_merge_keys, is_merge_key_line, MERGE_MARKER
from skunk.yamlparser.decoder import AnchorScopedLoader, build_anchor_index, decode
from skunk.yamlparser.parser import resolve, merge_to_bytes, dump_yaml

__all__ = [
    "find_subdirectories",
    "normalize_merge_keys",
    "is_merge_key_line",
    "MERGE_MARKER",
    "AnchorScopedLoader",
    "build_anchor_index",
    "decode",
    "resolve",
    "merge_to_bytes",
    "dump_yaml",
]
