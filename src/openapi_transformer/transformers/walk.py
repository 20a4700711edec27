"""Traversal helper shared by the bundled transformers."""

from collections.abc import Callable
from typing import Any


def recursive_walk(data: Any, visit: Callable[[Any], Any]) -> Any:
    """
    Apply ``visit`` to every node of a JSON-like structure, parents first.

    ``visit`` receives a node and returns its replacement (usually the same
    node, modified in place). Children of the replacement are visited next.

    Example:
        def uppercase_strings(node):
            return node.upper() if isinstance(node, str) else node

        recursive_walk({"name": "john"}, uppercase_strings)
        # {"name": "JOHN"}
    """
    data = visit(data)

    if isinstance(data, dict):
        # Keys are listed first because visit may add or remove keys
        for key in list(data.keys()):
            data[key] = recursive_walk(data[key], visit)
    elif isinstance(data, list):
        for index, item in enumerate(data):
            data[index] = recursive_walk(item, visit)

    return data


def require_mapping(document: Any) -> dict:
    """Return ``document`` if it is a mapping, else raise TypeError."""
    if not isinstance(document, dict):
        raise TypeError(
            f"Invalid OpenAPI document: expected an object, got {type(document).__name__}"
        )
    return document
