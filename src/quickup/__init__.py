"""quickup: keeps a QuickBot installation and its maintenance scripts current."""

__version__ = "0.1.0"
