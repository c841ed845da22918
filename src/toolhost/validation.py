"""
Input contract validation for tool arguments.

A tool declares its input contract as a fixed tree of
{type, enum, items, properties, required, default} nodes. Before a tool
runs, its arguments are checked against that tree in a single top-down pass:

- Declared properties are visited in declaration order, array items in
  index order
- The first violation raises ToolInvalidArgsError naming the offending
  field and the violated rule ("type", "enum" or "required")
- Missing optional properties with a declared default are filled in

The caller's value is never mutated; a normalized copy is returned.
Contracts are not self-referential, so no $ref resolution is done.
"""

import copy
from typing import Any

from toolhost.errors import ToolInvalidArgsError

RULE_TYPE = "type"
RULE_ENUM = "enum"
RULE_REQUIRED = "required"


def json_type_name(value: Any) -> str:
    """Name a Python value by its JSON type."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def matches_type(value: Any, expected: str) -> bool:
    """Check a value against a single JSON type name."""
    # bool is an int subclass in Python but never a JSON number
    if expected == "string":
        return isinstance(value, str)
    if expected == "number":
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if expected == "integer":
        if isinstance(value, bool):
            return False
        return isinstance(value, int) or (isinstance(value, float) and value.is_integer())
    if expected == "boolean":
        return isinstance(value, bool)
    if expected == "object":
        return isinstance(value, dict)
    if expected == "array":
        return isinstance(value, list)
    if expected == "null":
        return value is None
    # Unknown type names are not enforced
    return True


def validate_arguments(value: Any, contract: dict[str, Any], path: str = "arguments") -> Any:
    """
    Validate a value against an input contract.

    Args:
        value: The value to check (usually the decoded tool arguments)
        contract: The contract tree to check against
        path: Name of the value, used as the prefix of reported fields

    Returns:
        A normalized copy of the value with defaults filled in

    Raises:
        ToolInvalidArgsError: On the first violation found
    """
    _check_type(value, contract, path)
    _check_enum(value, contract, path)

    if isinstance(value, dict) and ("properties" in contract or "required" in contract):
        return _validate_object(value, contract, path)
    if isinstance(value, list) and "items" in contract:
        return [
            validate_arguments(item, contract["items"], f"{path}[{index}]")
            for index, item in enumerate(value)
        ]
    return copy.deepcopy(value)


def _check_type(value: Any, contract: dict[str, Any], path: str) -> None:
    expected = contract.get("type")
    if expected is None:
        return
    allowed = expected if isinstance(expected, list) else [expected]
    if any(matches_type(value, name) for name in allowed):
        return
    raise ToolInvalidArgsError(
        argument=path,
        rule=RULE_TYPE,
        detail=f"expected {' or '.join(allowed)}, got {json_type_name(value)}",
    )


def _check_enum(value: Any, contract: dict[str, Any], path: str) -> None:
    allowed = contract.get("enum")
    if allowed is None or value in allowed:
        return
    choices = ", ".join(repr(choice) for choice in allowed)
    raise ToolInvalidArgsError(
        argument=path,
        rule=RULE_ENUM,
        detail=f"{value!r} is not one of {choices}",
    )


def _validate_object(value: dict[str, Any], contract: dict[str, Any], path: str) -> dict[str, Any]:
    properties: dict[str, Any] = contract.get("properties", {})
    required: list[str] = contract.get("required", [])
    prefix = "" if path == "arguments" else f"{path}."

    # Undeclared keys pass through untouched
    normalized = {key: copy.deepcopy(item) for key, item in value.items() if key not in properties}

    for name, subcontract in properties.items():
        field_path = f"{prefix}{name}"
        if name in value:
            normalized[name] = validate_arguments(value[name], subcontract, field_path)
        elif name in required:
            raise _missing(field_path)
        elif "default" in subcontract:
            normalized[name] = copy.deepcopy(subcontract["default"])

    for name in required:
        if name not in properties and name not in value:
            raise _missing(f"{prefix}{name}")

    # Keep the caller's key order, then any defaults that were added
    ordered = {key: normalized[key] for key in value if key in normalized}
    ordered.update({key: item for key, item in normalized.items() if key not in ordered})
    return ordered


def _missing(field_path: str) -> ToolInvalidArgsError:
    return ToolInvalidArgsError(
        argument=field_path,
        rule=RULE_REQUIRED,
        detail="missing required field",
    )
