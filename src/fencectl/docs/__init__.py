"""Documentation scanning, block materialization and fence annotation."""
