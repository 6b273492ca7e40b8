"""
tests/test_yamlparser.py — Merge engine tests.

Scanner, anchor-scoped decoder, anchor index and the resolve /
merge_to_bytes entry points.
"""

import os
import sys
import shutil
import tempfile

import yaml
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from skunk.errors import (
    DecodeError, DirectoryScanError, FileReadError, SkunkError, UnresolvedAnchorError,
)
from skunk.yamlparser.scanner import find_subdirectories
from skunk.yamlparser.normalizer import normalize_merge_keys
from skunk.yamlparser.decoder import build_anchor_index, decode
from skunk.yamlparser.parser import resolve, merge_to_bytes

FIXTURES = os.path.join(os.path.dirname(__file__), "fixtures")
CATALOG = os.path.join(FIXTURES, "catalog")
STACKS = os.path.join(FIXTURES, "stacks")


def _make_tree(files: dict[str, str], dirs: tuple[str, ...] = ()) -> str:
    """Create a temporary directory tree."""
    root = tempfile.mkdtemp()
    for d in dirs:
        os.makedirs(os.path.join(root, d), exist_ok=True)
    for name, content in files.items():
        path = os.path.join(root, name)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "w") as f:
            f.write(content)
    return root


@pytest.fixture
def tree():
    roots = []

    def make(files, dirs=()):
        root = _make_tree(files, dirs)
        roots.append(root)
        return root

    yield make
    for root in roots:
        shutil.rmtree(root, ignore_errors=True)


COMBINED_STACK = """\
# Stack component definitions
terraform-vpc: &terraform-vpc
  type: terraform
  vars:
    cidr_block: 10.0.0.0/16
    enable_dns: true

helm-nginx: &helm-nginx
  type: helm
  vars:
    replicas: 3
    version: 1.19

# Stack definition
apiVersion: skunk/v1
kind: Stack
metadata:
  name: test-stack
spec:
  components:
    terraform:
      vpc:
        <<: *terraform-vpc
        vars:
          environment: dev
    helm:
      nginx:
        <<: *helm-nginx
        vars:
          replicas: 2
"""


# ─────────────────────────────────────────────
# SCANNER
# ─────────────────────────────────────────────
class TestScanner:
    def test_root_first_then_lexical_depth_first(self, tree):
        root = tree({}, dirs=("b", "a/y", "a/x", "c"))
        dirs = find_subdirectories(root)
        rel = [os.path.relpath(d, root) for d in dirs]
        assert rel == [".", "a", "a/x", "a/y", "b", "c"]

    def test_paths_are_absolute(self, tree):
        root = tree({}, dirs=("sub",))
        assert all(d.is_absolute() for d in find_subdirectories(root))

    def test_root_only(self, tree):
        root = tree({"a.yaml": "x: 1\n"})
        assert [str(d) for d in find_subdirectories(root)] == [os.path.abspath(root)]

    def test_deterministic(self, tree):
        root = tree({}, dirs=("m/n/o", "k", "m/a"))
        assert find_subdirectories(root) == find_subdirectories(root)

    def test_missing_root_raises(self):
        with pytest.raises(DirectoryScanError, match="not found"):
            find_subdirectories("/nonexistent/catalog")

    def test_file_root_raises(self, tree):
        root = tree({"a.yaml": "x: 1\n"})
        with pytest.raises(DirectoryScanError, match="not a directory"):
            find_subdirectories(os.path.join(root, "a.yaml"))

    def test_unreadable_subdirectory_raises(self, tree, monkeypatch):
        root = tree({}, dirs=("a", "b/locked", "c"))
        locked = os.path.join(os.path.abspath(root), "b", "locked")
        real_scandir = os.scandir

        def scandir(path="."):
            if os.fspath(path) == locked:
                raise PermissionError(13, "Permission denied", locked)
            return real_scandir(path)

        monkeypatch.setattr(os, "scandir", scandir)
        with pytest.raises(DirectoryScanError) as exc:
            find_subdirectories(root)
        assert str(exc.value.path) == locked
        assert "Permission denied" in str(exc.value)


# ─────────────────────────────────────────────
# DECODER
# ─────────────────────────────────────────────
class TestDecode:
    def test_override_replaces_not_deep_merges(self):
        data = decode(normalize_merge_keys(COMBINED_STACK))
        vpc = data["spec"]["components"]["terraform"]["vpc"]
        assert vpc["type"] == "terraform"
        assert vpc["vars"] == {"environment": "dev"}

        nginx = data["spec"]["components"]["helm"]["nginx"]
        assert nginx == {"type": "helm", "vars": {"replicas": 2}}

    def test_later_merge_source_wins(self):
        text = (
            "a: &a\n  x: 1\n  y: 1\n"
            "b: &b\n  y: 2\n  z: 2\n"
            "m:\n  <<: *a\n  <<: *b\n  w: 3\n"
        )
        data = decode(normalize_merge_keys(text))
        assert data["m"] == {"x": 1, "y": 2, "z": 2, "w": 3}

    def test_explicit_key_beats_all_merge_sources(self):
        text = (
            "a: &a\n  y: 1\n"
            "b: &b\n  y: 2\n"
            "m:\n  <<: *a\n  <<: *b\n  y: 3\n"
        )
        data = decode(normalize_merge_keys(text))
        assert data["m"] == {"y": 3}

    def test_conventional_list_form(self):
        text = (
            "a: &a\n  y: 1\n"
            "b: &b\n  y: 2\n"
            "m:\n  <<: [*a, *b]\n"
        )
        assert decode(text)["m"] == {"y": 2}

    def test_nested_merge_in_fragment(self):
        text = (
            "base: &base\n  type: terraform\n  backend: s3\n"
            "vpc: &vpc\n  <<: *base\n  vars: {cidr: 10.0.0.0/16}\n"
            "stack:\n  <<: *vpc\n  backend: local\n"
        )
        data = decode(text)
        assert data["stack"] == {
            "type": "terraform",
            "backend": "local",
            "vars": {"cidr": "10.0.0.0/16"},
        }

    def test_external_anchor(self, tree):
        root = tree({"frag.yaml": "shared: &shared\n  a: 1\n"})
        anchors = build_anchor_index([root])
        assert decode("m:\n  <<: *shared\n  b: 2\n", anchors) == {"m": {"a": 1, "b": 2}}

    def test_local_anchor_shadows_external(self, tree):
        root = tree({"frag.yaml": "shared: &shared\n  a: catalog\n"})
        anchors = build_anchor_index([root])
        text = "local: &shared\n  a: local\nm:\n  <<: *shared\n"
        assert decode(text, anchors)["m"] == {"a": "local"}

    def test_unknown_alias_raises(self):
        with pytest.raises(UnresolvedAnchorError) as exc:
            decode("m:\n  <<: *missing\n", path="stack.yaml")
        assert exc.value.anchor == "missing"
        assert exc.value.line == 2
        assert exc.value.path == "stack.yaml"

    def test_unknown_alias_is_decode_error(self):
        with pytest.raises(DecodeError):
            decode("value: *missing\n")

    def test_invalid_yaml_raises(self):
        with pytest.raises(DecodeError, match="failed to decode YAML"):
            decode("a: [1, 2\nb: }\n")

    def test_non_mapping_merge_raises(self):
        with pytest.raises(DecodeError, match="merging"):
            decode("m:\n  <<: 5\n")

    def test_non_mapping_root_raises(self):
        with pytest.raises(DecodeError, match="mapping"):
            decode("- a\n- b\n")

    def test_empty_document(self):
        assert decode("") == {}
        assert decode("# only a comment\n") == {}

    def test_first_document_only(self):
        assert decode("a: 1\n---\nb: 2\n") == {"a": 1}


# ─────────────────────────────────────────────
# ANCHOR INDEX
# ─────────────────────────────────────────────
class TestAnchorIndex:
    def test_collects_anchors_from_all_dirs(self):
        dirs = find_subdirectories(CATALOG)
        anchors = build_anchor_index(dirs)
        assert {
            "terraform-defaults", "terraform-vpc", "terraform-database",
            "helm-nginx", "region-us-east-1", "region-us-west-2",
        } <= set(anchors)

    def test_only_yaml_files(self, tree):
        root = tree({
            "a.yaml": "x: &a 1\n",
            "b.yml": "y: &b 2\n",
            "c.txt": "z: &c 3\n",
        })
        assert set(build_anchor_index([root])) == {"a", "b"}

    def test_forward_alias_between_files(self, tree):
        root = tree({
            "a.yaml": "derived: &derived\n  <<: *base\n  extra: 1\n",
            "b.yaml": "base: &base\n  kind: base\n",
        })
        anchors = build_anchor_index([root])
        assert decode("m: *derived\n", anchors) == {"m": {"kind": "base", "extra": 1}}

    def test_later_definition_wins(self, tree):
        root = tree({
            "a.yaml": "one: &dup\n  from: a\n",
            "sub/b.yaml": "two: &dup\n  from: b\n",
        })
        anchors = build_anchor_index(find_subdirectories(root))
        assert decode("m: *dup\n", anchors) == {"m": {"from": "b"}}

    def test_catalog_multiple_merge_keys(self, tree):
        root = tree({
            "a.yaml": (
                "x: &x\n  a: 1\n"
                "y: &y\n  b: 2\n"
                "xy: &xy\n  <<: *x\n  <<: *y\n"
            ),
        })
        anchors = build_anchor_index([root])
        assert decode("m: *xy\n", anchors) == {"m": {"a": 1, "b": 2}}

    def test_excluded_file_skipped(self, tree):
        root = tree({
            "frag.yaml": "f: &f 1\n",
            "stack.yaml": "s: &s 2\n",
        })
        anchors = build_anchor_index([root], exclude=[os.path.join(root, "stack.yaml")])
        assert set(anchors) == {"f"}

    def test_unresolvable_catalog_alias_raises(self, tree):
        root = tree({"bad.yaml": "m: *nowhere\n"})
        with pytest.raises(UnresolvedAnchorError) as exc:
            build_anchor_index([root])
        assert exc.value.anchor == "nowhere"
        assert str(exc.value.path).endswith("bad.yaml")

    def test_undefined_alias_reported_over_blocked_file(self, tree):
        root = tree({
            "a.yaml": "derived: &derived\n  <<: *base\n",
            "b.yaml": "base: &base\n  <<: *ghost\n",
        })
        with pytest.raises(UnresolvedAnchorError) as exc:
            build_anchor_index([root])
        assert exc.value.anchor == "ghost"
        assert str(exc.value.path).endswith("b.yaml")

    def test_mutual_aliases_report_first_file(self, tree):
        root = tree({
            "a.yaml": "x: &x\n  <<: *y\n",
            "b.yaml": "y: &y\n  <<: *x\n",
        })
        with pytest.raises(UnresolvedAnchorError) as exc:
            build_anchor_index([root])
        assert exc.value.anchor == "y"
        assert str(exc.value.path).endswith("a.yaml")

    def test_invalid_catalog_file_raises(self, tree):
        root = tree({"bad.yaml": "a: [1, 2\n"})
        with pytest.raises(DecodeError) as exc:
            build_anchor_index([root])
        assert str(exc.value.path).endswith("bad.yaml")


# ─────────────────────────────────────────────
# RESOLVE / MERGE
# ─────────────────────────────────────────────
class TestResolve:
    def test_cross_file_anchor(self, tree):
        root = tree({
            "sub/a.yaml": (
                "terraform-vpc: &terraform-vpc\n"
                "  type: terraform\n"
                "  vars:\n"
                "    cidr_block: \"10.0.0.0/16\"\n"
                "    enable_dns: true\n"
            ),
            "stack.yaml": (
                "spec:\n"
                "  components:\n"
                "    terraform:\n"
                "      vpc:\n"
                "        <<: *terraform-vpc\n"
                "        vars:\n"
                "          environment: dev\n"
            ),
        })
        data = resolve(os.path.join(root, "stack.yaml"), root)
        vpc = data["spec"]["components"]["terraform"]["vpc"]
        assert vpc == {"type": "terraform", "vars": {"environment": "dev"}}

    def test_fixture_stack(self):
        data = resolve(os.path.join(STACKS, "dev.yaml"), CATALOG)
        terraform = data["spec"]["components"]["terraform"]
        assert terraform["vpc"] == {
            "type": "terraform",
            "backend": "s3",
            "vars": {"environment": "dev"},
        }
        assert terraform["database"]["region"] == "us-east-1"
        assert terraform["database"]["backend"] == "s3-us-east-1"
        assert terraform["database"]["vars"]["storage_gb"] == 20
        assert data["spec"]["components"]["helm"]["nginx"]["vars"] == {"replicas": 2}

    def test_multiple_merge_keys_later_wins(self):
        data = resolve(os.path.join(STACKS, "prod.yaml"), CATALOG)
        vpc = data["spec"]["components"]["terraform"]["vpc"]
        assert vpc["backend"] == "s3-us-west-2"
        assert vpc["region"] == "us-west-2"
        assert vpc["vars"]["cidr_block"] == "10.1.0.0/16"
        assert "enable_dns" not in vpc["vars"]

    def test_missing_catalog_raises(self):
        with pytest.raises(DirectoryScanError) as exc:
            resolve(os.path.join(STACKS, "dev.yaml"), "/nonexistent/catalog")
        assert exc.value.catalog_dir == "/nonexistent/catalog"

    def test_missing_stack_raises(self):
        with pytest.raises(FileReadError) as exc:
            resolve("/nonexistent/stack.yaml", CATALOG)
        assert "/nonexistent/stack.yaml" in str(exc.value)

    def test_unknown_anchor_carries_context(self, tree):
        root = tree({"stack.yaml": "m:\n  <<: *ghost\n"}, dirs=("catalog",))
        stack = os.path.join(root, "stack.yaml")
        catalog = os.path.join(root, "catalog")
        with pytest.raises(UnresolvedAnchorError) as exc:
            resolve(stack, catalog)
        message = str(exc.value)
        assert "ghost" in message
        assert stack in message
        assert catalog in message

    def test_errors_share_base(self):
        with pytest.raises(SkunkError):
            resolve("/nonexistent/stack.yaml", CATALOG)

    def test_fresh_per_call(self, tree):
        root = tree({
            "frag.yaml": "f: &f\n  v: 1\n",
            "stacks/s.yaml": "m: *f\n",
        })
        stack = os.path.join(root, "stacks", "s.yaml")
        assert resolve(stack, root) == {"m": {"v": 1}}

        with open(os.path.join(root, "frag.yaml"), "w") as f:
            f.write("f: &f\n  v: 2\n")
        assert resolve(stack, root) == {"m": {"v": 2}}


class TestMergeToBytes:
    def test_round_trip(self):
        stack = os.path.join(STACKS, "dev.yaml")
        data = merge_to_bytes(stack, CATALOG)
        assert isinstance(data, bytes)
        assert decode(data.decode("utf-8"), {}) == resolve(stack, CATALOG)

    def test_no_anchors_or_aliases(self, tree):
        root = tree({
            "frag.yaml": "shared: &shared\n  a: 1\n",
            "stacks/s.yaml": "x: *shared\ny: *shared\n",
        })
        data = merge_to_bytes(os.path.join(root, "stacks", "s.yaml"), root)
        text = data.decode("utf-8")
        assert "&" not in text
        assert "*" not in text
        assert yaml.safe_load(text) == {"x": {"a": 1}, "y": {"a": 1}}

    def test_sorted_keys(self, tree):
        root = tree({"stacks/s.yaml": "b: 1\na: 2\nc: 3\n"})
        data = merge_to_bytes(os.path.join(root, "stacks", "s.yaml"), root)
        assert data == b"a: 2\nb: 1\nc: 3\n"

    def test_recursive_alias_raises(self, tree):
        root = tree({"stacks/s.yaml": "a: &a\n  self: *a\n"})
        stack = os.path.join(root, "stacks", "s.yaml")
        with pytest.raises(DecodeError) as exc:
            merge_to_bytes(stack, root)
        assert "recursive alias cannot be expanded" in str(exc.value)
        assert str(exc.value.path) == stack
        assert exc.value.catalog_dir == root
