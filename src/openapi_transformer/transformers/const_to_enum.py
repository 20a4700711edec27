"""Convert ``const`` keywords to single-value ``enum`` arrays.

Before:
    status:
      type: string
      const: active

After:
    status:
      type: string
      enum: [active]
"""

from typing import Any

from openapi_transformer.transformers.walk import recursive_walk, require_mapping


def _const_to_enum(node: Any) -> Any:
    if isinstance(node, dict) and "const" in node:
        node["enum"] = [node.pop("const")]
    return node


class Transformer:
    """Replace every ``const: x`` with ``enum: [x]``."""

    def transform_document(self, document: Any) -> dict:
        return recursive_walk(require_mapping(document), _const_to_enum)
