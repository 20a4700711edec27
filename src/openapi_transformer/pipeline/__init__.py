"""Transformer resolution, loading, assembly and execution."""
