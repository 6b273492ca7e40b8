"""
skunk.yamlparser.decoder — Anchor-scoped YAML decoder.

Aliases in a stack file may point at anchors defined in any catalog
file, not only in the stack file itself:

    # catalog/terraform/vpc.yaml
    terraform-vpc: &terraform-vpc
      type: terraform
      vars:
        cidr_block: 10.0.0.0/16

    # stacks/dev.yaml
    spec:
      components:
        terraform:
          vpc:
            <<: *terraform-vpc
            vars:
              environment: dev

Two phases:
  1. build_anchor_index() composes every catalog file once and records
     anchor name → node.
  2. decode() composes the stack text with that index pre-seeded, so
     aliases resolve to catalog nodes, then constructs plain Python data.

Merge precedence: explicit keys > later merge sources > earlier ones.
Explicit keys replace merged values whole; nested mappings are not
combined.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterable

import yaml
from yaml.constructor import ConstructorError
from yaml.events import AliasEvent, CollectionStartEvent, ScalarEvent
from yaml.nodes import MappingNode, Node, SequenceNode

from skunk.errors import DecodeError, DirectoryScanError, FileReadError, UnresolvedAnchorError
from skunk.yamlparser.normalizer import normalize_merge_keys

logger = logging.getLogger(__name__)

YAML_SUFFIXES = (".yaml", ".yml")

_MERGE_TAG = "tag:yaml.org,2002:merge"
_VALUE_TAG = "tag:yaml.org,2002:value"
_STR_TAG = "tag:yaml.org,2002:str"


class AnchorScopedLoader(yaml.SafeLoader):
    """SafeLoader that resolves aliases against external anchors.

    Anchors defined in the document shadow external anchors of the same
    name. Anchors defined by each composed document are exposed through
    ``document_anchors``.
    """

    def __init__(self, stream, anchors: dict[str, Node] | None = None):
        super().__init__(stream)
        self.external_anchors = dict(anchors or {})
        self.document_anchors: dict[str, Node] = {}
        self._shadowable: set[str] = set()
        self._defined: list[str] = []

    def compose_document(self):
        # Drop the DOCUMENT-START event
        self.get_event()

        self.anchors = dict(self.external_anchors)
        self._shadowable = set(self.external_anchors)
        self._defined = []

        node = self.compose_node(None, None)

        # Drop the DOCUMENT-END event
        self.get_event()

        self.document_anchors = {name: self.anchors[name] for name in self._defined}
        self.anchors = {}
        return node

    def compose_node(self, parent, index):
        event = self.peek_event()
        if isinstance(event, AliasEvent):
            if event.anchor not in self.anchors:
                raise UnresolvedAnchorError(event.anchor, line=event.start_mark.line + 1)
        elif event.anchor is not None:
            if event.anchor in self._shadowable:
                self._shadowable.discard(event.anchor)
                del self.anchors[event.anchor]
            self._defined.append(event.anchor)
        return super().compose_node(parent, index)

    def flatten_mapping(self, node):
        """Inline merge sources; later sources and explicit keys win."""
        merge: list[tuple[Node, Node]] = []
        index = 0
        while index < len(node.value):
            key_node, value_node = node.value[index]
            if key_node.tag == _MERGE_TAG:
                del node.value[index]
                merge.extend(self._merge_pairs(node, value_node))
            elif key_node.tag == _VALUE_TAG:
                key_node.tag = _STR_TAG
                index += 1
            else:
                index += 1
        if merge:
            node.value = merge + node.value

    def _merge_pairs(self, node: MappingNode, value_node: Node) -> list[tuple[Node, Node]]:
        if isinstance(value_node, MappingNode):
            self.flatten_mapping(value_node)
            return list(value_node.value)

        if isinstance(value_node, SequenceNode):
            pairs: list[tuple[Node, Node]] = []
            for subnode in value_node.value:
                if not isinstance(subnode, MappingNode):
                    raise ConstructorError(
                        "while constructing a mapping", node.start_mark,
                        f"expected a mapping for merging, but found {subnode.id}",
                        subnode.start_mark,
                    )
                self.flatten_mapping(subnode)
                pairs.extend(subnode.value)
            return pairs

        raise ConstructorError(
            "while constructing a mapping", node.start_mark,
            f"expected a mapping or list of mappings for merging, but found {value_node.id}",
            value_node.start_mark,
        )


def decode(
    text: str,
    anchors: dict[str, Node] | None = None,
    path: str | Path | None = None,
) -> dict[str, Any]:
    """Decode normalized YAML text into a plain dict.

    Only the first document is decoded.

    Args:
        text: Normalized YAML text
        anchors: Anchor index from build_anchor_index()
        path: Source file, used in error messages

    Returns:
        Decoded mapping ({} for an empty document)

    Raises:
        UnresolvedAnchorError: Alias with no matching anchor
        DecodeError: Invalid YAML, bad merge value, non-mapping root
    """
    loader = AnchorScopedLoader(text, anchors)
    try:
        data = loader.get_data()
    except UnresolvedAnchorError as e:
        if e.path is None:
            e.path = path
        raise
    except yaml.YAMLError as e:
        raise DecodeError(f"failed to decode YAML: {e}", path=path) from e
    finally:
        loader.dispose()

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise DecodeError(
            f"expected a YAML mapping at the document root, got {type(data).__name__}",
            path=path,
        )
    return data


def build_anchor_index(
    reference_dirs: Iterable[str | Path],
    exclude: Iterable[str | Path] = (),
) -> dict[str, Node]:
    """Collect anchors from every YAML file in the reference directories.

    Only files directly inside each directory are read; the directory set
    is expected to already contain every nested directory. A file that
    aliases an anchor from a file not indexed yet is retried once more
    anchors are known. When two files define the same anchor, the file
    later in reference order wins.

    Args:
        reference_dirs: Ordered directory set (see find_subdirectories)
        exclude: Files to skip (the stack file itself)

    Returns:
        Anchor name → composed node

    Raises:
        FileReadError: Catalog file unreadable
        DecodeError: Catalog file is not valid YAML
        UnresolvedAnchorError: Catalog aliases that no file can satisfy
    """
    files = _reference_files(reference_dirs, exclude)
    texts = {f: normalize_merge_keys(_read_text(f)) for f in files}

    resolved: dict[Path, dict[str, Node]] = {}
    pending = list(files)
    while pending:
        index = _ordered_index(files, resolved)
        deferred: list[Path] = []
        failures: dict[Path, UnresolvedAnchorError] = {}
        for f in pending:
            try:
                resolved[f] = _compose_anchors(texts[f], index, f)
            except UnresolvedAnchorError as e:
                deferred.append(f)
                failures[f] = e

        if len(deferred) == len(pending):
            raise _unresolved(deferred, failures, texts, index)
        if deferred:
            logger.debug("Retrying %d catalog file(s) with forward aliases", len(deferred))
        pending = deferred

    index = _ordered_index(files, resolved)
    logger.debug("Indexed %d anchor(s) from %d catalog file(s)", len(index), len(files))
    return index


def _unresolved(
    deferred: list[Path],
    failures: dict[Path, UnresolvedAnchorError],
    texts: dict[Path, str],
    index: dict[str, Node],
) -> UnresolvedAnchorError:
    """Pick the failure to report once no deferred file can make progress.

    An alias that no catalog file defines is the root cause; files that
    only wait on each other's anchors are reported when nothing else is.
    """
    declared = set(index)
    for f in deferred:
        declared |= _declared_anchors(texts[f], f)
    for f in deferred:
        if failures[f].anchor not in declared:
            return failures[f]
    return failures[deferred[0]]


def _declared_anchors(text: str, path: Path) -> set[str]:
    """Anchor names a file defines, read from its event stream."""
    try:
        return {
            event.anchor
            for event in yaml.parse(text, Loader=yaml.SafeLoader)
            if isinstance(event, (ScalarEvent, CollectionStartEvent)) and event.anchor
        }
    except yaml.YAMLError as e:
        raise DecodeError(f"failed to decode YAML: {e}", path=path) from e


def _reference_files(reference_dirs: Iterable[str | Path], exclude: Iterable[str | Path]) -> list[Path]:
    """YAML files of each directory, sorted by name, in directory order."""
    excluded = {Path(p).resolve() for p in exclude}
    seen: set[Path] = set()
    files: list[Path] = []
    for d in reference_dirs:
        try:
            entries = sorted(Path(d).iterdir())
        except OSError as e:
            raise DirectoryScanError(
                f"Cannot list reference directory {d}: {e.strerror or e}", path=d,
            ) from e
        for entry in entries:
            if entry.suffix not in YAML_SUFFIXES or not entry.is_file():
                continue
            real = entry.resolve()
            if real in excluded or real in seen:
                continue
            seen.add(real)
            files.append(entry)
    return files


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise FileReadError(f"failed to read YAML file {path}: {e}", path=path) from e


def _compose_anchors(text: str, index: dict[str, Node], path: Path) -> dict[str, Node]:
    """Anchors defined by every document of one file."""
    loader = AnchorScopedLoader(text, index)
    anchors: dict[str, Node] = {}
    try:
        while loader.check_node():
            loader.get_node()
            anchors.update(loader.document_anchors)
    except UnresolvedAnchorError as e:
        e.path = path
        raise
    except yaml.YAMLError as e:
        raise DecodeError(f"failed to decode YAML: {e}", path=path) from e
    finally:
        loader.dispose()
    return anchors


def _ordered_index(files: list[Path], resolved: dict[Path, dict[str, Node]]) -> dict[str, Node]:
    index: dict[str, Node] = {}
    for f in files:
        if f in resolved:
            index.update(resolved[f])
    return index
