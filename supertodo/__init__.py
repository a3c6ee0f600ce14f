"""supertodo: daily task organizer core."""

__version__ = "0.1.0"
