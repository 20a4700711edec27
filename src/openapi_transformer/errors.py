"""Exceptions raised while assembling, loading, and running transformers.

Every error carries the identity of what failed (specifier, file) both as
attributes and in its message, so the CLI can report it on a single line.
"""

from pathlib import Path


class TransformerError(Exception):
    """Base class for all errors raised by the transformer pipeline."""


class ConfigError(TransformerError):
    """A configuration source or transformer reference is malformed."""

    def __init__(self, message: str, source: str | None = None) -> None:
        self.source = source
        if source:
            message = f"{message} in {source}"
        super().__init__(message)


class ResolutionError(TransformerError):
    """A transformer specifier could not be located."""

    def __init__(self, specifier: str, origin: Path | None, reason: str | None = None) -> None:
        self.specifier = specifier
        self.origin = origin
        where = str(origin) if origin is not None else "the working directory"
        message = f"Cannot resolve transformer {specifier!r} from {where}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class LoadError(TransformerError):
    """A transformer module was found but could not be imported or constructed."""

    def __init__(self, specifier: str, reason: str) -> None:
        self.specifier = specifier
        self.reason = reason
        super().__init__(f"Cannot load transformer {specifier!r}: {reason}")


class PipelineError(TransformerError):
    """A transformer raised while transforming the document."""

    def __init__(self, specifier: str, index: int, reason: str) -> None:
        self.specifier = specifier
        self.index = index
        super().__init__(f"{reason} applying transformer {specifier}")


class DocumentError(Exception):
    """The input document could not be read or parsed."""
