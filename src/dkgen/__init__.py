"""DraftKings NFL classic lineup validation and generation."""

__version__ = "0.1.0"
