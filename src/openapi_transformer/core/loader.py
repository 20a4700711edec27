"""Module for reading OpenAPI documents."""

import json
import logging
from pathlib import Path
from typing import Any, TextIO

import yaml

from openapi_transformer.errors import DocumentError

logger = logging.getLogger(__name__)

STDIN_NAME = "-"


def parse_document(text: str, source: str = STDIN_NAME) -> Any:
    """
    Parse an OpenAPI document from JSON or YAML text.

    JSON is tried first since it is by far the most common encoding and
    JSON parse errors are precise. YAML is the fallback, which also accepts
    JSON with duplicate keys (the last value wins).

    Args:
        text: The document text
        source: Name of the file the text was read from, used in error messages

    Returns:
        The parsed document

    Raises:
        DocumentError: If the text is neither valid JSON nor valid YAML
    """
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        logger.debug("Error parsing %s as JSON: %s", source, e)

    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as e:
        message = " ".join(str(e).split())
        raise DocumentError(f"{type(e).__name__}: {message} in {source}") from e


def read_document(path: str, stdin: TextIO) -> Any:
    """
    Read and parse an OpenAPI document from a file, or stdin when ``path`` is ``-``.

    Raises:
        DocumentError: If the file cannot be read or parsed
    """
    if path == STDIN_NAME:
        return parse_document(stdin.read(), STDIN_NAME)

    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise DocumentError(f"Cannot read {path}: {e.strerror or e}") from e
    except UnicodeDecodeError as e:
        raise DocumentError(f"Cannot decode {path}: {e}") from e

    return parse_document(text, path)
