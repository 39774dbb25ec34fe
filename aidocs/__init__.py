"""Generate machine-readable documentation for a project's installed packages."""

__version__ = "0.3.0"
