"""Flowplane — ordered integration flows with guaranteed teardown."""

__version__ = "0.1.0"
