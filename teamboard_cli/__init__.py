"""Command-line client for the team dashboard.

The command surface is implemented with Typer and Rich for better help and
error ergonomics, while screens render as plain text tables on stdout.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
