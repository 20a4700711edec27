"""Convert OpenAPI 3.0 ``nullable`` to OpenAPI 3.1 null types.

OpenAPI 3.1 dropped ``nullable: true`` in favour of JSON Schema's ``null``
type. This transformer rewrites:

- ``type: string, nullable: true`` to ``type: [string, "null"]``
- schemas without ``type`` (``$ref``, ``allOf``, ...) to
  ``anyOf: [<schema>, {type: "null"}]``
- ``enum`` values of nullable schemas to include ``null``

``nullable: false`` is removed. By default the document's ``openapi``
version is raised to 3.1.0 when it was 3.0.x.
"""

from typing import Any

from openapi_transformer.transformers.walk import recursive_walk, require_mapping

TARGET_VERSION = "3.1.0"

# Annotations that stay on the outer schema when it is wrapped in anyOf
_ANNOTATIONS = ("title", "description", "default", "example", "deprecated", "readOnly", "writeOnly")


def _make_nullable(schema: dict) -> dict:
    if "enum" in schema and isinstance(schema["enum"], list) and None not in schema["enum"]:
        schema["enum"].append(None)

    type_value = schema.get("type")
    if isinstance(type_value, str):
        if type_value != "null":
            schema["type"] = [type_value, "null"]
        return schema
    if isinstance(type_value, list):
        if "null" not in type_value:
            type_value.append("null")
        return schema

    wrapped = {key: value for key, value in schema.items() if key not in _ANNOTATIONS}
    if not wrapped:
        # An empty schema already accepts null
        return schema
    result = {key: value for key, value in schema.items() if key in _ANNOTATIONS}
    result["anyOf"] = [wrapped, {"type": "null"}]
    return result


def _convert_node(node: Any) -> Any:
    if not isinstance(node, dict) or not isinstance(node.get("nullable"), bool):
        return node
    if node.pop("nullable"):
        return _make_nullable(node)
    return node


class Transformer:
    """
    Rewrite ``nullable`` for OpenAPI 3.1.

    Args:
        update_version: Set ``openapi`` to 3.1.0 when the document declares 3.0.x
    """

    def __init__(self, update_version: bool = True) -> None:
        self.update_version = update_version

    def transform_document(self, document: Any) -> dict:
        document = require_mapping(document)
        version = document.get("openapi")
        if self.update_version and isinstance(version, str) and version.startswith("3.0"):
            document["openapi"] = TARGET_VERSION
        return recursive_walk(document, _convert_node)
