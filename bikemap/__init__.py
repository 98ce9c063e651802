"""Interactive map of bicycle collisions and the bike lane network."""

__version__ = "0.1.0"
