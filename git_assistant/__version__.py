"""Version information for git-assistant."""

try:
    from git_assistant._version import __version__
except ImportError:
    # Running from a source tree that was never built
    __version__ = "0.0.0+unknown"
