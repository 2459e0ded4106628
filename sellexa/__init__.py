"""Client state layer for the Sellexa marketplace: cached domain stores over a managed backend."""

__version__ = "0.1.0"
