"""NeetSync: durable sync of accepted solutions to a GitHub repository."""

__version__ = "0.3.0"

__all__ = ["__version__"]
