"""dpui: safe display layout control on top of displayplacer."""

__version__ = "0.3.0"
