"""Configuration file model and loading for openapi-transformer."""

import json
from pathlib import Path
from typing import Any, TextIO

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from openapi_transformer.core.loader import STDIN_NAME
from openapi_transformer.errors import ConfigError
from openapi_transformer.references import TransformerReference


class TransformerConfig(BaseModel):
    """Configuration model for a transformer run.

    Unknown top-level keys are rejected so that typos surface as errors
    instead of silently dropping transformers.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    transformers: list[str | list[Any]] = Field(
        default_factory=list,
        description="Transformers to apply, as 'specifier' or ['specifier', ...arguments]",
    )

    @field_validator("transformers")
    @classmethod
    def check_entries(cls, entries: list[str | list[Any]]) -> list[str | list[Any]]:
        """Require a non-empty specifier string at the head of every entry."""
        for index, entry in enumerate(entries):
            specifier = entry[0] if isinstance(entry, list) and entry else entry
            if not isinstance(specifier, str) or not specifier.strip():
                raise ValueError(
                    f"entry {index} must be a specifier string or [specifier, ...arguments], "
                    f"got {entry!r}"
                )
        return entries

    def references(self, origin: Path | None = None) -> list[TransformerReference]:
        """Return the configured transformers as references rooted at ``origin``."""
        return [TransformerReference.from_entry(entry, origin) for entry in self.transformers]


def _format_validation_error(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"])
        parts.append(f"{location}: {item['msg']}" if location else item["msg"])
    return "; ".join(parts)


def load_config(text: str, source: str = STDIN_NAME) -> TransformerConfig:
    """
    Parse and validate a JSON configuration document.

    Args:
        text: The configuration document
        source: Name of the file the text was read from, used in error messages

    Returns:
        The validated configuration

    Raises:
        ConfigError: If the text is not JSON, is not an object, or does not
                     match the configuration schema
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON configuration: {e}", source) from e

    if not isinstance(data, dict):
        raise ConfigError(
            f"Configuration must be a JSON object, got {type(data).__name__}", source
        )

    try:
        return TransformerConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {_format_validation_error(e)}", source) from e


def read_config(path: str, stdin: TextIO) -> tuple[TransformerConfig, Path | None]:
    """
    Read a configuration file, or stdin when ``path`` is ``-``.

    Returns:
        A tuple of (config, origin) where origin is the absolute directory of
        the configuration file, or None when it was read from stdin

    Raises:
        ConfigError: If the file cannot be read or is invalid
    """
    if path == STDIN_NAME:
        return load_config(stdin.read(), STDIN_NAME), None

    config_path = Path(path)
    try:
        text = config_path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read configuration: {e.strerror or e}", path) from e

    return load_config(text, path), config_path.resolve().parent
