"""
skunk.yamlparser.normalizer — Multiple merge key rewrite.

Stack files commonly repeat the merge key inside one mapping:

    vpc:
      <<: *terraform-defaults
      <<: *network-defaults
      vars:
        environment: dev

A mapping cannot hold the same key twice, so consecutive merge keys at
the same indentation and path are folded into a single entry:

    vpc:
      <<: [<<: *terraform-defaults, <<: *network-defaults]
      vars:
        environment: dev

Each list item is the original entry verbatim, so the list holds
single-pair mappings that each merge one anchor. Later items win on
key collisions.

This is a text rewrite, not a validator. The path stack assumes 2-space
indentation; other widths give best-effort grouping whose mistakes show
up as decode errors later.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

MERGE_MARKER = "<<"

_MERGE_LINE = re.compile(r"^<<\s*:")
_TRAILING_COMMENT = re.compile(r"\s+#.*$")
_INDENT_WIDTH = 2


@dataclass
class _MergeGroup:
    """Consecutive merge key lines of one mapping."""
    indent: int
    path: tuple[str, ...]
    slot: int                     # output index of the first line
    lines: list[str] = field(default_factory=list)

    def render(self) -> str:
        if len(self.lines) == 1:
            return self.lines[0]
        refs = [_TRAILING_COMMENT.sub("", line.strip()) for line in self.lines]
        return " " * self.indent + f"{MERGE_MARKER}: [" + ", ".join(refs) + "]"


def is_merge_key_line(line: str) -> bool:
    """True if the line's content is a merge key entry."""
    return bool(_MERGE_LINE.match(line.strip()))


def normalize_merge_keys(text: str) -> str:
    """Fold repeated merge keys into one merge entry per mapping.

    Documents with at most one merge key per mapping come back unchanged.

    Args:
        text: Raw YAML text

    Returns:
        YAML text with every merge key group rewritten
    """
    lines = text.split("\n")
    out: list[str] = []

    path: list[str] = []
    prev_indent = 0
    prev_key: str | None = None
    pending: _MergeGroup | None = None

    def close_group() -> None:
        nonlocal pending
        if pending is not None:
            out[pending.slot] = pending.render()
            pending = None

    for line in lines:
        stripped = line.strip()

        # Blank lines and comments never affect grouping
        if not stripped or stripped.startswith("#"):
            out.append(line)
            continue

        indent = len(line) - len(line.lstrip(" "))

        if indent < prev_indent:
            levels = (prev_indent - indent) // _INDENT_WIDTH
            if levels <= len(path):
                del path[len(path) - levels:]
            else:
                path = []
        elif indent > prev_indent and prev_key is not None:
            path.append(prev_key)

        prev_indent = indent
        prev_key = _line_key(stripped)

        if not _MERGE_LINE.match(stripped):
            close_group()
            out.append(line)
            continue

        if pending is not None and pending.indent == indent and pending.path == tuple(path):
            # Folded into the group's first line
            pending.lines.append(line)
            continue

        close_group()
        pending = _MergeGroup(indent=indent, path=tuple(path), slot=len(out), lines=[line])
        out.append(line)

    close_group()
    return "\n".join(out)


def _line_key(stripped: str) -> str:
    """Mapping key of a content line ("- name: x" → "name")."""
    if stripped.startswith("- "):
        stripped = stripped[2:].lstrip()
    return stripped.split(":", 1)[0].strip()
