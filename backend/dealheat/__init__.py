"""DealHeat backend: community deal voting and heat ranking."""

__version__ = "0.1.0"
