"""Module for writing OpenAPI documents."""

import datetime
import json
import re
from decimal import Decimal
from typing import Any, TextIO

# A JSON string (skipped) or a number written in exponential notation
_STRING_OR_EXPONENTIAL = re.compile(
    r'"(?:[^"\\]|\\.)*"|-?(?:0|[1-9]\d*)(?:\.\d+)?[eE][-+]?\d+'
)


def _json_default(value: Any) -> Any:
    # YAML timestamps load as date/datetime objects
    if isinstance(value, (datetime.date, datetime.datetime)):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _plain_number(match: re.Match[str]) -> str:
    token = match.group(0)
    if token.startswith('"'):
        return token
    return format(Decimal(token), "f")


def replace_exponentials(json_text: str) -> str:
    """
    Rewrite numbers in exponential notation as plain decimals.

    Some OpenAPI tooling rejects exponents (e.g. ``1e+21`` for a ``maximum``),
    so ``1e+21`` becomes ``1000000000000000000000`` and ``1.5e-07`` becomes
    ``0.00000015``. Text inside JSON strings is left untouched.
    """
    return _STRING_OR_EXPONENTIAL.sub(_plain_number, json_text)


def dump_document(document: Any) -> str:
    """
    Serialize an OpenAPI document as pretty-printed JSON.

    Args:
        document: The OpenAPI document

    Returns:
        JSON text indented by 2 spaces, with a trailing newline

    Raises:
        TypeError: If the document contains values JSON cannot represent
        ValueError: If the document contains NaN or infinite numbers
    """
    json_text = json.dumps(
        document, indent=2, ensure_ascii=False, allow_nan=False, default=_json_default
    )
    return replace_exponentials(json_text) + "\n"


def write_document(document: Any, stream: TextIO) -> None:
    """Serialize ``document`` and write it to ``stream``.

    Nothing is written if serialization fails.
    """
    stream.write(dump_document(document))
    stream.flush()
