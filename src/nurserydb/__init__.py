"""nurserydb: access control and data access for the nursery backend."""

__version__ = "0.1.0"
