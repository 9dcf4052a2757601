"""
git-assistant - guarded git operations and merge-conflict resolution
"""

from .__version__ import __version__
from .core import GitAssistant
from .cli.main import main

__all__ = ["GitAssistant", "main", "__version__"]
