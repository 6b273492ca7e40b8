"""skunk.stack — Stack discovery and components view."""

from skunk.stack.finder import find_stacks, extract_stack_metadata, StackMetadata
from skunk.stack.filters import filter_stacks, match_wildcard, find_duplicate_stacks
from skunk.stack.components import (
    Component,
    ComponentVar,
    extract_components,
    extract_component_vars,
    find_component,
    format_tfvars,
)

__all__ = [
    "find_stacks",
    "extract_stack_metadata",
    "StackMetadata",
    "filter_stacks",
    "match_wildcard",
    "find_duplicate_stacks",
    "Component",
    "ComponentVar",
    "extract_components",
    "extract_component_vars",
    "find_component",
    "format_tfvars",
]
