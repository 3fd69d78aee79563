"""taskdeck: console task manager over a hosted table + storage bucket with realtime sync."""

__version__ = "0.1.0"
