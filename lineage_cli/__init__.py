"""Command-line client for the lineage-tracking REST API.

The command surface is implemented with Typer and Rich for better help and
error ergonomics, while lineage responses are emitted as plain JSON.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
