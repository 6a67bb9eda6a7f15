"""codev - chat with a hosted model from your terminal."""

__version__ = "0.1.0"
