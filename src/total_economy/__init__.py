"""Total Economy: per-player accounts for a game-server economy plugin."""

__version__ = "1.0.0"
