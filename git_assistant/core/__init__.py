"""Core command layer for git-assistant."""

from .assistant import GitAssistant

__all__ = ["GitAssistant"]
