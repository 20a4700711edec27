"""Transformers bundled with openapi-transformer."""
