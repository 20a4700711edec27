"""Convert the invalid ``type: float`` to ``type: number`` with ``format: float``."""

from typing import Any

from openapi_transformer.transformers.walk import recursive_walk, require_mapping


def _float_to_number(node: Any) -> Any:
    if isinstance(node, dict) and node.get("type") == "float":
        node["type"] = "number"
        node["format"] = "float"
    return node


class Transformer:
    def transform_document(self, document: Any) -> dict:
        return recursive_walk(require_mapping(document), _float_to_number)
