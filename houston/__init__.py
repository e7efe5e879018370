"""Houston: file-based work tracking with a workspace consistency checker."""

__version__ = "0.4.0"
