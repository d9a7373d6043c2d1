"""Device resolution and eSIM capability engine."""

__version__ = "0.1.0"
