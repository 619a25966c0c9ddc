"""Keyboard-driven popup navigation for desktop shells."""

__version__ = "0.1.0"
