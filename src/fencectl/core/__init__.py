"""Shared runtime helpers: context, errors, logging, subprocess."""
