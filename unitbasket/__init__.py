"""Unit Basket Oracle — gold + FX basket unit price."""

__version__ = "1.0.0"
