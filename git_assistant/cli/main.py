"""Command-line interface for git-assistant"""

import asyncio
import os
import sys

from rich.console import Console

from git_assistant.cli.args import parse_args
from git_assistant.config import Config
from git_assistant.core import GitAssistant
from git_assistant.exceptions import GitAssistantError, PartialSuccessError, RepositoryError
from git_assistant.logging_config import setup_logging
from git_assistant.models.conflict import ResolutionStrategy
from git_assistant.models.operation import GuardedOperationOutcome
from git_assistant.services.display_service import DisplayService
from git_assistant.services.history_service import HistoryStore
from git_assistant.ui.console import ConsolePrompter

console = Console()

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_MANUAL_RECOVERY = 2


def exit_code_for(outcome: GuardedOperationOutcome) -> int:
    """0 for completed or aborted, 1 for failed, 2 when manual recovery is needed."""
    try:
        outcome.raise_for_outcome()
    except PartialSuccessError:
        return EXIT_MANUAL_RECOVERY
    except (GitAssistantError, OSError):
        return EXIT_FAILURE
    return EXIT_OK


def build_config(parsed_args) -> Config:
    return Config(
        confirm_push=not parsed_args.no_confirm_push,
        confirm_merge=not parsed_args.no_confirm_merge,
        remote_name=parsed_args.remote,
        default_branch=parsed_args.default_branch,
        git_timeout=parsed_args.timeout,
        history_path=parsed_args.history_file,
        verbose=parsed_args.verbose,
        debug=parsed_args.debug,
    )


async def show_state(assistant: GitAssistant, display: DisplayService, parsed_args) -> int:
    """Read-only commands: status, branches and log."""
    client = assistant.client
    try:
        if parsed_args.command == "status":
            display.display_status(await client.get_status(), await client.stash_list())
        elif parsed_args.command == "branches":
            display.display_branches(await client.get_branches())
        else:
            display.display_log(await client.get_log(limit=parsed_args.limit))
    except RepositoryError as e:
        console.print(f"[red]Error: {e}[/red]")
        return EXIT_FAILURE
    return EXIT_OK


async def run_command(assistant: GitAssistant, display: DisplayService, parsed_args) -> int:
    command = parsed_args.command

    if command in ("status", "branches", "log"):
        return await show_state(assistant, display, parsed_args)

    if command == "pull":
        outcome = await assistant.quick_pull()
    elif command == "push":
        outcome = await assistant.quick_push()
    elif command == "switch":
        outcome = await assistant.switch_branch(parsed_args.branch)
    elif command == "merge":
        outcome = await assistant.merge_branch(parsed_args.branch)
    elif command == "create-branch":
        outcome = await assistant.create_branch(parsed_args.branch, checkout=parsed_args.checkout)
    elif command == "delete-branch":
        outcome = await assistant.delete_branch(parsed_args.branch, force=parsed_args.force)
    elif command == "resolve":
        strategy = ResolutionStrategy(parsed_args.strategy) if parsed_args.strategy else None
        outcome = await assistant.resolve_conflicts(parsed_args.path, strategy)
    elif command == "mark-resolved":
        outcome = await assistant.mark_resolved(parsed_args.path)
    elif command == "init":
        outcome = await assistant.init_repository(follow_up=not parsed_args.yes)
    elif command == "add-remote":
        outcome = await assistant.add_remote(parsed_args.name, parsed_args.url)
    elif command == "initial-commit":
        outcome = await assistant.initial_commit(parsed_args.message, push=parsed_args.push)
    elif command == "clone":
        outcome = await assistant.clone_repository(parsed_args.url, parsed_args.target)
    else:
        raise ValueError(f"Unknown command: {command}")

    display.display_outcome(outcome)
    return exit_code_for(outcome)


def main(argv=None) -> int:
    """Main entry point for the application."""
    parsed_args = parse_args(argv)

    log_file = setup_logging(verbose=parsed_args.verbose, debug=parsed_args.debug, tui_mode=parsed_args.command == "tui")

    try:
        config = build_config(parsed_args)
    except ValueError as e:
        console.print(f"[red]Invalid configuration: {e}[/red]")
        return EXIT_FAILURE

    if parsed_args.debug:
        console.print("[yellow]Debug mode enabled[/yellow]")
        console.print(f"[yellow]Logging to {log_file}[/yellow]")
        console.print("[yellow]Configuration:[/yellow]")
        for key, value in config.to_dict().items():
            console.print(f"  {key}: {value}")

    history = HistoryStore(config.history_path, limit=config.history_limit)
    history.load()
    repo_path = os.path.abspath(parsed_args.repo_path)

    try:
        if parsed_args.command == "tui":
            from git_assistant.tui import GitAssistantApp
            app = GitAssistantApp(repo_path, config, history)
            app.run()
            return EXIT_OK

        display = DisplayService(verbose=parsed_args.verbose, debug=parsed_args.debug, output=console)

        if parsed_args.command == "history":
            if parsed_args.clear:
                history.clear()
                history.save()
                console.print("Command history cleared")
            else:
                display.display_history(history.get_history(parsed_args.limit))
            return EXIT_OK

        prompter = ConsolePrompter(console, assume_yes=parsed_args.yes)
        assistant = GitAssistant(repo_path, config, prompter, history=history)
        return asyncio.run(run_command(assistant, display, parsed_args))
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        return EXIT_FAILURE
    except OSError as e:
        console.print(f"[red]Error: {e}[/red]")
        if parsed_args.debug:
            console.print_exception()
        return EXIT_FAILURE


if __name__ == "__main__":
    sys.exit(main())
