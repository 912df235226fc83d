"""Core configuration and utilities for NoteBase."""

from notebase.core.config import settings
from notebase.core.logging import setup_logging

__all__ = ["settings", "setup_logging"]
