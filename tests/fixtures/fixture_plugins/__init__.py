"""Transformers imported by module name, rooted at the fixtures directory."""
