"""Packaged JSON schemas and validation for fencectl inputs and outputs."""

from .validate import load_catalog, schema_path, validate

__all__ = ["load_catalog", "schema_path", "validate"]
