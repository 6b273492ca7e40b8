"""
skunk.stack.components — Components view of a resolved stack.

Resolved stacks follow the layout:

    spec:
      components:
        <type>:          # terraform, helm, ...
          <name>:
            vars: {...}

The merge engine does not know about this layout; only this module does.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from skunk.errors import StackNotFoundError


@dataclass
class Component:
    """A component of a stack."""
    type: str
    name: str


@dataclass
class ComponentVar:
    """A single component variable."""
    name: str
    value: Any


def extract_components(tree: dict[str, Any]) -> list[Component]:
    """List components of a resolved stack, sorted by type then name."""
    spec = tree.get("spec")
    if not isinstance(spec, dict):
        return []
    components = spec.get("components")
    if not isinstance(components, dict):
        return []

    result: list[Component] = []
    for type_name, by_name in components.items():
        if not isinstance(by_name, dict):
            continue
        for comp_name in by_name:
            result.append(Component(type=str(type_name), name=str(comp_name)))
    return sorted(result, key=lambda c: (c.type, c.name))


def find_component(components: list[Component], name: str) -> Component | None:
    for comp in components:
        if comp.name == name:
            return comp
    return None


def extract_component_vars(
    tree: dict[str, Any],
    component_type: str,
    component_name: str,
) -> list[ComponentVar]:
    """Variables of one component, sorted by name.

    Raises:
        StackNotFoundError: A section along spec.components.<type>.<name>.vars
            is missing
    """
    spec = _section(tree, "spec", "spec section not found in YAML")
    components = _section(spec, "components", "components section not found in YAML")
    by_name = _section(components, component_type, f"component type '{component_type}' not found")
    component = _section(by_name, component_name, f"component '{component_name}' not found")
    variables = _section(component, "vars", f"vars section not found for component '{component_name}'")

    return sorted(
        (ComponentVar(name=str(k), value=v) for k, v in variables.items()),
        key=lambda v: v.name,
    )


def _section(data: dict[str, Any], key: str, message: str) -> dict[str, Any]:
    value = data.get(key)
    if not isinstance(value, dict):
        raise StackNotFoundError(message)
    return value


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# TFVARS
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
def format_tfvars(variables: list[ComponentVar], stack_file: str, component_name: str) -> str:
    """Render variables as a Terraform .tfvars file."""
    lines = [
        f"# Terraform variables for component '{component_name}' from stack '{stack_file}'",
        "# Generated by skunk",
        "",
    ]
    for var in variables:
        lines.append(f"{var.name} = {format_tfvars_value(var.value)}")
    return "\n".join(lines) + "\n"


def format_tfvars_value(value: Any) -> str:
    """Format one value in Terraform syntax.

    >>> format_tfvars_value({"b": 1, "a": "x"})
    '{\\n  a = "x"\\n  b = 1\\n}'
    >>> format_tfvars_value([1, True, None])
    '[1, true, null]'
    """
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        return json.dumps(value)
    if isinstance(value, dict):
        if not value:
            return "{}"
        pairs = sorted(f"{k} = {format_tfvars_value(v)}" for k, v in value.items())
        return "{\n  " + "\n  ".join(pairs) + "\n}"
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(format_tfvars_value(v) for v in value) + "]"
    return json.dumps(value, default=str)
