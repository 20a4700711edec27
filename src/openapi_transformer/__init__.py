"""Apply transformer plugins to an OpenAPI document."""

from openapi_transformer.version import __version__

__all__ = ["__version__"]
