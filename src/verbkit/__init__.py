"""verbkit: dotfile-style convenience verbs dispatched to interchangeable command-line tools."""

__all__ = ["__version__"]

__version__ = "0.1.0"
