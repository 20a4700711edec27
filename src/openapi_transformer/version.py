"""Version of the openapi-transformer package."""

__version__ = "1.0.0"
