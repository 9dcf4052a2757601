"""Command-line argument parsing for git-assistant."""

import argparse
from git_assistant.__version__ import __version__

STRATEGIES = ["ours", "theirs", "both", "manual"]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="git-assistant",
        description="Guarded git operations with stash safety and conflict resolution",
        epilog="Run 'git-assistant tui' for the interactive interface.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Show verbose output")
    parser.add_argument("--version", action="version", version=f"git-assistant {__version__}")
    parser.add_argument(
        "--debug", action="store_true", help="Show debug information for troubleshooting"
    )
    parser.add_argument(
        "-C", "--repo", dest="repo_path", default=".", metavar="PATH",
        help="Run as if started in PATH (default: current directory)",
    )
    parser.add_argument(
        "-y", "--yes", action="store_true",
        help="Answer yes to confirmations and take the first option of every choice",
    )
    parser.add_argument("--no-confirm-push", action="store_true", help="Push without asking first")
    parser.add_argument("--no-confirm-merge", action="store_true", help="Merge without asking first")
    parser.add_argument("--remote", default="origin", help="Remote used for pushes (default: origin)")
    parser.add_argument(
        "--default-branch", default="main", help="Branch name used by init (default: main)"
    )
    parser.add_argument(
        "--timeout", type=float, default=60, metavar="SECONDS",
        help="Kill git commands that run longer than this (default: 60)",
    )
    parser.add_argument("--history-file", metavar="PATH", help="Command history file")

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    subparsers.add_parser("status", help="Show working copy status")
    subparsers.add_parser("branches", help="List local and remote branches")
    log_parser = subparsers.add_parser("log", help="Show recent commits")
    log_parser.add_argument("-n", "--limit", type=int, default=20, help="Number of commits (default: 20)")

    subparsers.add_parser("pull", help="Pull, stashing uncommitted work if you choose")
    subparsers.add_parser("push", help="Push committed work to the remote")

    switch_parser = subparsers.add_parser("switch", help="Switch to another branch")
    switch_parser.add_argument("branch", nargs="?", help="Branch to check out (prompted if omitted)")

    merge_parser = subparsers.add_parser("merge", help="Merge a branch into the current branch")
    merge_parser.add_argument("branch", nargs="?", help="Branch to merge (prompted if omitted)")

    create_parser = subparsers.add_parser("create-branch", help="Create a new branch")
    create_parser.add_argument("branch", nargs="?", help="New branch name (prompted if omitted)")
    checkout_group = create_parser.add_mutually_exclusive_group()
    checkout_group.add_argument(
        "--switch", dest="checkout", action="store_true", default=None, help="Switch to the new branch"
    )
    checkout_group.add_argument(
        "--no-switch", dest="checkout", action="store_false", help="Stay on the current branch"
    )

    delete_parser = subparsers.add_parser("delete-branch", help="Delete a local branch")
    delete_parser.add_argument("branch", nargs="?", help="Branch to delete (prompted if omitted)")
    delete_parser.add_argument("--force", action="store_true", help="Delete even if not fully merged")

    resolve_parser = subparsers.add_parser("resolve", help="Resolve merge conflicts in a file")
    resolve_parser.add_argument("path", nargs="?", help="Conflicted file (prompted if omitted)")
    resolve_parser.add_argument(
        "-s", "--strategy", choices=STRATEGIES, help="Resolution strategy (prompted if omitted)"
    )

    mark_parser = subparsers.add_parser("mark-resolved", help="Stage a file whose conflicts are resolved")
    mark_parser.add_argument("path", nargs="?", help="Resolved file (prompted if omitted)")

    subparsers.add_parser("init", help="Initialize a repository in the current folder")

    remote_parser = subparsers.add_parser("add-remote", help="Add a remote repository")
    remote_parser.add_argument("name", nargs="?", help="Remote name (prompted if omitted)")
    remote_parser.add_argument("url", nargs="?", help="Remote URL (prompted if omitted)")

    commit_parser = subparsers.add_parser("initial-commit", help="Stage everything and commit")
    commit_parser.add_argument("-m", "--message", help="Commit message (prompted if omitted)")
    push_group = commit_parser.add_mutually_exclusive_group()
    push_group.add_argument("--push", dest="push", action="store_true", default=None, help="Push after committing")
    push_group.add_argument("--no-push", dest="push", action="store_false", help="Do not push")

    clone_parser = subparsers.add_parser("clone", help="Clone a repository")
    clone_parser.add_argument("url", nargs="?", help="Repository URL (prompted if omitted)")
    clone_parser.add_argument("target", nargs="?", help="Target directory (prompted if omitted)")

    history_parser = subparsers.add_parser("history", help="Show recently run commands")
    history_parser.add_argument("-n", "--limit", type=int, default=20, help="Number of entries (default: 20)")
    history_parser.add_argument("--clear", action="store_true", help="Forget all recorded commands")

    subparsers.add_parser("tui", help="Launch the interactive interface")

    return parser


def parse_args(argv=None):
    """Parse command-line arguments; 'status' is the default command."""
    parsed_args = build_parser().parse_args(argv)
    if parsed_args.command is None:
        parsed_args.command = "status"
    return parsed_args
