"""EasyDrop — subscription registry and atomic batch airdrops."""

__version__ = "0.1.0"
