"""Sample management attributes on an interval and print them as a table."""

__version__ = "0.1.0"
