"""DramBox: whiskey collection and pour tracking service."""

__version__ = "0.3.0"
