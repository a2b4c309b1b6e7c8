"""Command line tools for DramBox."""
