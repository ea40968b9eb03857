"""novelscript: a plain-text screenplay format with a live editor and query console."""

__version__ = "0.1.0"
