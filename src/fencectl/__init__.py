__version__ = "0.1.0"

__all__ = [
    "__version__",
    "checker",
    "cli",
    "config",
    "contracts",
    "core",
    "docs",
    "pipeline",
    "report",
]
