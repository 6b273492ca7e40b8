"""
skunk.stack.finder — Stack discovery.

A stack file is any YAML file with ``kind: Stack``:

    apiVersion: skunk/v1
    kind: Stack
    metadata:
      name: dev-us-east-1
      labels:
        env: dev
    spec:
      components: ...

Stack files usually alias catalog anchors, so a plain YAML load fails
on them. Metadata is then read line by line instead.
"""

from __future__ import annotations

import glob
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from skunk.yamlparser.decoder import YAML_SUFFIXES

logger = logging.getLogger(__name__)

STACK_KIND = "Stack"

_KIND_LINE = re.compile(r"^kind:\s*['\"]?Stack['\"]?\s*$", re.MULTILINE)
_TOP_LEVEL_KEY = re.compile(r"^[^\s#-][^:]*:")
_NAME_LINE = re.compile(r"^  name:\s*(.+?)\s*$")
_LABELS_LINE = re.compile(r"^  labels:\s*$")
# Plain label values only; anchors, aliases and flow values are skipped
_LABEL_LINE = re.compile(r"^    ([A-Za-z0-9_.\-/]+):\s*([^*&{}\[\]<\s][^*{}\[\]<]*?)\s*$")


@dataclass
class StackMetadata:
    """Identity of a discovered stack."""
    name: str
    labels: dict[str, str] = field(default_factory=dict)
    file_path: str = ""


def find_stacks(glob_pattern: str) -> list[StackMetadata]:
    """Find stack files matching a glob pattern.

    Args:
        glob_pattern: e.g. "stacks/**/*.yaml"

    Returns:
        StackMetadata list, sorted by file path
    """
    stacks: list[StackMetadata] = []
    for match in sorted(glob.glob(glob_pattern, recursive=True)):
        path = Path(match)
        if path.is_dir() or path.suffix not in YAML_SUFFIXES:
            continue

        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Error processing %s: %s", path, e)
            continue

        metadata = extract_stack_metadata(content, str(path))
        if metadata is not None:
            stacks.append(metadata)
    return stacks


def extract_stack_metadata(content: str, file_path: str = "") -> StackMetadata | None:
    """Extract metadata from stack file content.

    Returns None when the content is not a stack.
    """
    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError:
        data = None

    if isinstance(data, dict):
        if data.get("kind") != STACK_KIND:
            return None
        metadata = data.get("metadata") or {}
        if not isinstance(metadata, dict):
            metadata = {}
        labels = metadata.get("labels") or {}
        return StackMetadata(
            name=str(metadata.get("name", "")),
            labels={str(k): str(v) for k, v in labels.items()} if isinstance(labels, dict) else {},
            file_path=file_path,
        )

    return _extract_with_lines(content, file_path)


def _extract_with_lines(content: str, file_path: str) -> StackMetadata | None:
    """Line-based fallback for files a plain YAML load rejects."""
    if not _KIND_LINE.search(content):
        return None

    name = None
    labels: dict[str, str] = {}
    in_metadata = False
    in_labels = False

    for line in content.splitlines():
        if _TOP_LEVEL_KEY.match(line):
            in_metadata = line.rstrip() == "metadata:"
            in_labels = False
            continue
        if not in_metadata:
            continue

        if _LABELS_LINE.match(line):
            in_labels = True
            continue

        m = _NAME_LINE.match(line)
        if m and name is None:
            name = _unquote(m.group(1))
            in_labels = False
            continue

        if in_labels:
            m = _LABEL_LINE.match(line)
            if m:
                labels[m.group(1)] = _unquote(m.group(2))
            elif line.strip() and not line.startswith("    "):
                in_labels = False

    if name is None:
        logger.warning("Stack name not found in %s", file_path or "<content>")
        return None

    return StackMetadata(name=name, labels=labels, file_path=file_path)


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "'\"":
        return value[1:-1]
    return value
