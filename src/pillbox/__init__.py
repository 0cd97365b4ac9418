"""pillbox renders chat message bodies with resolved mentions and detected links."""

__version__ = "0.1.0"
