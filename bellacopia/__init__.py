"""Game-state core for a tile-based adventure: save store, resources, maps, modal stack, dialogue and battle modals."""

__version__ = "0.1.0"