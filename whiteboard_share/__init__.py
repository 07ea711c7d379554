"""Email the companion board's whiteboard from a host control-panel button."""

__version__ = "2.0.0"
