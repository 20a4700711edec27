"""Transformer references: which transformer to load, with which arguments."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from openapi_transformer.errors import ConfigError


@dataclass(frozen=True)
class TransformerReference:
    """
    A transformer to instantiate for one pipeline run.

    Attributes:
        specifier: Module name, file path or ``file:`` URL of the transformer
        arguments: Positional arguments passed to the transformer factory
        origin: Directory relative specifiers are resolved from
                (``None`` for the working directory)
    """

    specifier: str
    arguments: tuple[Any, ...] = field(default=())
    origin: Path | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.specifier, str) or not self.specifier.strip():
            raise ConfigError(
                f"Transformer specifier must be a non-empty string, got {self.specifier!r}"
            )
        # Accept any sequence but store a tuple so references stay immutable
        if not isinstance(self.arguments, tuple):
            object.__setattr__(self, "arguments", tuple(self.arguments))

    @classmethod
    def from_entry(cls, entry: Any, origin: Path | None = None) -> "TransformerReference":
        """
        Build a reference from a configuration entry.

        An entry is either a bare specifier string or a list whose first item
        is the specifier and whose remaining items are constructor arguments.

        Args:
            entry: The raw configuration value
            origin: Directory of the configuration file that declared the entry

        Returns:
            The corresponding TransformerReference

        Raises:
            ConfigError: If the entry has any other shape
        """
        if isinstance(entry, str):
            return cls(entry, (), origin)
        if isinstance(entry, (list, tuple)) and entry and isinstance(entry[0], str):
            return cls(entry[0], tuple(entry[1:]), origin)
        raise ConfigError(
            f"Transformer entry must be a string or [specifier, ...arguments], got {entry!r}"
        )
