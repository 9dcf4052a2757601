"""Prompt collaborators, modal screens and panels for git-assistant."""

from .console import ConsolePrompter
from .prompts import Prompter

__all__ = ["ConsolePrompter", "Prompter"]
