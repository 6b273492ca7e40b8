"""
skunk.stack.filters — Stack filters.

Filter forms (all given filters must match):

    /regex/          name matches regex
    name=glob        name matches wildcard (* and ?)
    name!=glob       name does not match wildcard
    name~=regex      name matches regex
    name!~=regex     name does not match regex
    key=value        label equals
    key!=value       label missing or different
    glob             bare wildcard on name
"""

from __future__ import annotations

import logging
import re

from skunk.stack.finder import StackMetadata

logger = logging.getLogger(__name__)


def filter_stacks(stacks: list[StackMetadata], filters: list[str] | tuple[str, ...]) -> list[StackMetadata]:
    """Keep the stacks that match every filter."""
    return [s for s in stacks if all(apply_filter(s, f) for f in filters)]


def apply_filter(stack: StackMetadata, flt: str) -> bool:
    """True if the stack matches a single filter."""
    if len(flt) > 2 and flt.startswith("/") and flt.endswith("/"):
        return _regex_match(stack.name, flt[1:-1])

    # Longest prefixes first: "name!~=" before "name!=" before "name="
    if flt.startswith("name!~="):
        return not _regex_match(stack.name, flt[len("name!~="):])
    if flt.startswith("name~="):
        return _regex_match(stack.name, flt[len("name~="):])
    if flt.startswith("name!="):
        return not match_wildcard(stack.name, flt[len("name!="):])
    if flt.startswith("name="):
        return match_wildcard(stack.name, flt[len("name="):])

    if "!=" in flt:
        key, value = (part.strip() for part in flt.split("!=", 1))
        return stack.labels.get(key) != value
    if "=" in flt:
        key, value = (part.strip() for part in flt.split("=", 1))
        return key in stack.labels and stack.labels[key] == value

    return match_wildcard(stack.name, flt)


def match_wildcard(s: str, pattern: str) -> bool:
    """Match a whole string against * / ? wildcards.

    >>> match_wildcard("dev-us-east-1", "dev-*")
    True
    >>> match_wildcard("dev1", "dev?")
    True
    """
    regex = "".join(
        ".*" if ch == "*" else "." if ch == "?" else re.escape(ch)
        for ch in pattern
    )
    return re.fullmatch(regex, s, re.DOTALL) is not None


def _regex_match(name: str, pattern: str) -> bool:
    try:
        return re.search(pattern, name) is not None
    except re.error as e:
        # An invalid pattern does not exclude anything
        logger.warning("Invalid regex pattern: %s, error: %s", pattern, e)
        return True


def find_duplicate_stacks(stacks: list[StackMetadata]) -> dict[str, list[str]]:
    """Stack name → file paths, for names defined more than once."""
    paths_by_name: dict[str, list[str]] = {}
    for stack in stacks:
        paths_by_name.setdefault(stack.name, []).append(stack.file_path)
    return {name: paths for name, paths in paths_by_name.items() if len(paths) > 1}
