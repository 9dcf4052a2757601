"""User-facing commands for git-assistant"""

import asyncio
import os
from typing import Awaitable, Callable, Optional, Union

from git_assistant.config import Config
from git_assistant.constants import (
    CHOICE_CREATE_AND_SWITCH,
    CHOICE_CREATE_ONLY,
    SEVERITY_ERROR,
    SEVERITY_INFO,
    SEVERITY_WARNING,
    command_name,
)
from git_assistant.exceptions import (
    ConflictParseError,
    ExternalToolError,
    InvalidArgumentError,
    NoConflictMarkersFound,
    NotARepositoryError,
    PreconditionFailedError,
    RepositoryError,
    UserCancelledError,
)
from git_assistant.logging_config import get_logger
from git_assistant.models.conflict import ResolutionStrategy
from git_assistant.models.operation import GuardedOperationOutcome, OutcomeKind, OutcomeReason
from git_assistant.services.conflict_resolver import ConflictResolver
from git_assistant.services.git import RepositoryClient
from git_assistant.services.history_service import HistoryStore
from git_assistant.services.notification_bus import ChangeNotificationBus
from git_assistant.services.orchestrator import MutationOrchestrator
from git_assistant.ui.prompts import Prompter
from git_assistant.utils.validation import (
    validate_branch_name,
    validate_clone_url,
    validate_commit_message,
    validate_remote_name,
    validate_remote_url,
)

logger = get_logger(__name__)

Body = Callable[[], Awaitable[GuardedOperationOutcome]]

STRATEGY_CHOICES = {
    "Accept current (ours)": ResolutionStrategy.OURS,
    "Accept incoming (theirs)": ResolutionStrategy.THEIRS,
    "Accept both": ResolutionStrategy.BOTH,
    "Edit manually": ResolutionStrategy.MANUAL,
}

NEXT_ACTION_MANUAL_EDIT = "Edit the file by hand, then run 'git-assistant mark-resolved'."
NEXT_ACTION_PUSH_FAILED = "Check the remote, then run 'git-assistant push'."

# Aborts the user caused directly; these are neither reported nor recorded
_SILENT_REASONS = (OutcomeReason.USER_CANCELLED,)


def _require_answer(value, prompt: str):
    if value is None:
        raise UserCancelledError(prompt)
    return value


class GitAssistant:
    """Runs each user command against one working copy.

    Wires the repository client, the mutation orchestrator, the change bus,
    the prompt collaborator and the command history together. Every command
    returns a GuardedOperationOutcome and never raises for expected failures.
    """

    def __init__(
        self,
        repo_path: str,
        config: Union[Config, dict],
        prompter: Prompter,
        history: Optional[HistoryStore] = None,
        bus: Optional[ChangeNotificationBus] = None,
        client: Optional[RepositoryClient] = None,
    ):
        """Initialize the assistant.

        Args:
            repo_path: Path to the working copy
            config: Configuration dict or Config object
            prompter: Prompt collaborator (console or TUI)
            history: Loaded history store; commands are not recorded without one
            bus: Change bus shared with the views
            client: Repository client, mainly for tests
        """
        self.repo_path = repo_path
        if isinstance(config, dict):
            self.config = Config.from_dict(config)
        else:
            self.config = config
        self.client = client or RepositoryClient(repo_path, self.config)
        self.bus = bus or ChangeNotificationBus()
        self.history = history
        self.resolver = ConflictResolver()
        self.orchestrator = MutationOrchestrator(self.client, prompter, self.bus, self.config)
        self._prompter = prompter

    @property
    def prompter(self) -> Prompter:
        return self._prompter

    @prompter.setter
    def prompter(self, prompter: Prompter) -> None:
        self._prompter = prompter
        self.orchestrator.prompter = prompter

    # Command boundary

    async def _run(self, command: str, body: Body, record: bool = True) -> GuardedOperationOutcome:
        """Run one command body and turn every expected error into an outcome."""
        logger.debug(f"Running command '{command}'")
        try:
            outcome = await body()
        except UserCancelledError:
            outcome = GuardedOperationOutcome.aborted(command, OutcomeReason.USER_CANCELLED)
        except (PreconditionFailedError, NotARepositoryError) as e:
            outcome = GuardedOperationOutcome.aborted(command, OutcomeReason.PRECONDITION_FAILED, detail=str(e))
        except (RepositoryError, ConflictParseError, OSError) as e:
            logger.error(f"Command '{command}' failed: {e}")
            outcome = GuardedOperationOutcome.failed(command, e)

        await self._report(command, outcome)
        if record and outcome.reason not in _SILENT_REASONS:
            self._record(command, outcome)
        return outcome

    async def _report(self, command: str, outcome: GuardedOperationOutcome) -> None:
        name = command_name(command)
        if outcome.kind == OutcomeKind.COMPLETED:
            await self.prompter.notify(outcome.detail or f"{name} succeeded", SEVERITY_INFO)
        elif outcome.kind == OutcomeKind.COMPLETED_WITH_MANUAL_RECOVERY:
            message = f"{name} needs attention"
            if outcome.detail:
                message += f": {outcome.detail}"
            await self.prompter.notify(f"{message}\n{outcome.next_action}", SEVERITY_WARNING)
        elif outcome.kind == OutcomeKind.FAILED:
            await self.prompter.notify(f"{name} failed: {outcome.error}", SEVERITY_ERROR)
        elif outcome.reason not in _SILENT_REASONS:
            message = outcome.detail or outcome.reason.value.replace("_", " ")
            if outcome.next_action:
                message += f"\n{outcome.next_action}"
            severity = SEVERITY_INFO if outcome.reason in (
                OutcomeReason.NOTHING_TO_PUSH, OutcomeReason.MANUAL_EDIT,
                OutcomeReason.ALREADY_ON_BRANCH,
            ) else SEVERITY_WARNING
            await self.prompter.notify(message, severity)

    def _record(self, command: str, outcome: GuardedOperationOutcome) -> None:
        if self.history is None:
            return
        error = None
        if outcome.kind == OutcomeKind.FAILED:
            error = str(outcome.error)
        elif outcome.kind != OutcomeKind.COMPLETED:
            error = outcome.detail or outcome.reason.value
        self.history.add(command, command_name(command), outcome.kind == OutcomeKind.COMPLETED, error)
        try:
            self.history.save()
        except OSError as e:
            logger.warning(f"Could not save command history: {e}")

    async def _require_repository(self) -> None:
        if not await self.client.is_repository():
            raise PreconditionFailedError(f"'{os.path.abspath(self.repo_path)}' is not a git repository")

    # Sync

    async def quick_pull(self) -> GuardedOperationOutcome:
        return await self._run("pull", self.orchestrator.guarded_pull)

    async def quick_push(self) -> GuardedOperationOutcome:
        return await self._run("push", self.orchestrator.guarded_push)

    # Branches

    async def switch_branch(self, name: Optional[str] = None) -> GuardedOperationOutcome:
        async def body():
            target = name
            if target is None:
                branches = await self.client.get_branches()
                options = branches.others()
                if not options:
                    raise PreconditionFailedError("There are no other branches to switch to")
                target = _require_answer(
                    await self.prompter.choose("Switch to which branch?", options), "switch branch"
                )
            return await self.orchestrator.guarded_checkout(target)
        return await self._run("switch", body)

    async def merge_branch(self, name: Optional[str] = None) -> GuardedOperationOutcome:
        async def body():
            target = name
            if target is None:
                branches = await self.client.get_branches()
                options = branches.others()
                if not options:
                    raise PreconditionFailedError("There are no other branches to merge")
                target = _require_answer(
                    await self.prompter.choose(f"Merge which branch into '{branches.current}'?", options),
                    "merge branch",
                )
            return await self.orchestrator.merge(target)
        return await self._run("merge", body)

    async def create_branch(self, name: Optional[str] = None, checkout: Optional[bool] = None) -> GuardedOperationOutcome:
        async def body():
            branch = name
            if branch is None:
                branch = _require_answer(
                    await self.prompter.input_text("New branch name", validate_branch_name), "branch name"
                )
            else:
                error = validate_branch_name(branch)
                if error:
                    raise InvalidArgumentError("create_branch", error, branch)

            switch = checkout
            if switch is None:
                choice = _require_answer(
                    await self.prompter.choose(
                        f"Create '{branch}' and switch to it?", [CHOICE_CREATE_AND_SWITCH, CHOICE_CREATE_ONLY]
                    ),
                    "create branch",
                )
                switch = choice == CHOICE_CREATE_AND_SWITCH

            async def create():
                await self.client.create_branch(branch, checkout=switch)
                detail = f"Created and switched to '{branch}'" if switch else f"Created branch '{branch}'"
                return GuardedOperationOutcome.completed("create-branch", detail=detail)

            return await self.orchestrator.run_exclusive("create-branch", create)
        return await self._run("create-branch", body)

    async def delete_branch(self, name: Optional[str] = None, force: bool = False) -> GuardedOperationOutcome:
        async def body():
            branches = await self.client.get_branches()
            target = name
            if target is None:
                options = [branch for branch in branches.local if branch != branches.current]
                if not options:
                    raise PreconditionFailedError("There are no other local branches to delete")
                target = _require_answer(
                    await self.prompter.choose("Delete which branch?", options), "delete branch"
                )
            if target == branches.current:
                raise PreconditionFailedError(f"Cannot delete the current branch '{target}'")
            if not await self.prompter.confirm(f"Delete branch '{target}'?"):
                raise UserCancelledError("delete branch")

            async def delete(force_delete: bool):
                await self.client.delete_branch(target, force=force_delete)
                return GuardedOperationOutcome.completed("delete-branch", detail=f"Deleted branch '{target}'")

            try:
                return await self.orchestrator.run_exclusive("delete-branch", lambda: delete(force))
            except ExternalToolError as e:
                if force or "not fully merged" not in (e.message or ""):
                    raise
                if not await self.prompter.confirm(f"'{target}' is not fully merged. Delete it anyway?"):
                    raise UserCancelledError("force delete") from None
                return await self.orchestrator.run_exclusive("delete-branch", lambda: delete(True))
        return await self._run("delete-branch", body)

    # Conflicts

    async def _choose_conflicted(self, prompt: str) -> str:
        conflicts = await self.client.get_conflicts()
        if not conflicts:
            raise PreconditionFailedError("There are no conflicted files")
        return _require_answer(await self.prompter.choose(prompt, conflicts), prompt)

    async def resolve_conflicts(
        self, path: Optional[str] = None, strategy: Optional[ResolutionStrategy] = None
    ) -> GuardedOperationOutcome:
        async def body():
            target = path
            if target is None:
                target = await self._choose_conflicted("Resolve conflicts in which file?")

            chosen = strategy
            if chosen is None:
                label = _require_answer(
                    await self.prompter.choose(f"How should '{target}' be resolved?", list(STRATEGY_CHOICES)),
                    "resolution strategy",
                )
                chosen = STRATEGY_CHOICES[label]

            if chosen == ResolutionStrategy.MANUAL:
                return GuardedOperationOutcome.aborted(
                    "resolve", OutcomeReason.MANUAL_EDIT, detail=f"Left '{target}' for manual editing",
                    next_action=NEXT_ACTION_MANUAL_EDIT,
                )

            full_path = os.path.join(await self.client.get_root(), target)

            async def resolve():
                try:
                    result = await asyncio.to_thread(self.resolver.resolve_file, full_path, chosen)
                except NoConflictMarkersFound as e:
                    return GuardedOperationOutcome.aborted("resolve", OutcomeReason.PRECONDITION_FAILED, detail=str(e))
                return GuardedOperationOutcome.completed(
                    "resolve",
                    detail=f"Resolved {result.resolved} conflict(s) in '{target}'. "
                           f"Review it, then run 'git-assistant mark-resolved'.",
                )

            return await self.orchestrator.run_exclusive("resolve", resolve)
        return await self._run("resolve", body)

    async def mark_resolved(self, path: Optional[str] = None) -> GuardedOperationOutcome:
        async def body():
            target = path
            if target is None:
                target = await self._choose_conflicted("Mark which file as resolved?")

            full_path = os.path.join(await self.client.get_root(), target)
            if os.path.isfile(full_path):
                with open(full_path, "r", encoding="utf-8", errors="replace", newline="") as f:
                    text = f.read()
                if self.resolver.has_conflict_markers(text):
                    if not await self.prompter.confirm(f"'{target}' still contains conflict markers. Stage it anyway?"):
                        raise UserCancelledError("mark resolved")

            async def stage():
                await self.client.add([target])
                return GuardedOperationOutcome.completed("mark-resolved", detail=f"Marked '{target}' as resolved")

            return await self.orchestrator.run_exclusive("mark-resolved", stage)
        return await self._run("mark-resolved", body)

    # Repository setup

    async def init_repository(self, follow_up: bool = True) -> GuardedOperationOutcome:
        """Create a repository whose first branch is the configured default branch."""
        async def body():
            if await self.client.is_repository():
                raise PreconditionFailedError("This folder is already a git repository")
            if not await self.prompter.confirm(f"Initialize a git repository in '{os.path.abspath(self.repo_path)}'?"):
                raise UserCancelledError("init")

            default_branch = self.config.default_branch

            async def init():
                await self.client.init_repository(initial_branch=default_branch)
                try:
                    branches = await self.client.get_branches()
                    if branches.current and branches.current != default_branch:
                        await self.client.rename_current_branch(default_branch)
                except RepositoryError as e:
                    logger.warning(f"Could not rename the initial branch to '{default_branch}': {e}")
                return GuardedOperationOutcome.completed("init", detail="Initialized git repository")

            return await self.orchestrator.run_exclusive("init", init)

        outcome = await self._run("init", body)
        if follow_up and outcome.kind == OutcomeKind.COMPLETED:
            if await self.prompter.confirm("Add a remote repository now?"):
                await self.add_remote()
        return outcome

    async def add_remote(
        self, name: Optional[str] = None, url: Optional[str] = None, overwrite: Optional[bool] = None
    ) -> GuardedOperationOutcome:
        async def body():
            await self._require_repository()

            remote = name
            if remote is None:
                remote = _require_answer(
                    await self.prompter.input_text(
                        "Remote name", validate_remote_name, default=self.config.remote_name
                    ),
                    "remote name",
                )

            existing = {info.name for info in await self.client.get_remotes()}
            replace = False
            if remote in existing:
                replace = overwrite
                if replace is None:
                    replace = await self.prompter.confirm(f"Remote '{remote}' already exists. Overwrite it?")
                if not replace:
                    raise UserCancelledError("overwrite remote")

            remote_url = url
            if remote_url is None:
                remote_url = _require_answer(
                    await self.prompter.input_text("Remote repository URL", validate_remote_url), "remote URL"
                )
            else:
                error = validate_remote_url(remote_url)
                if error:
                    raise InvalidArgumentError("add_remote", error)

            async def add():
                if replace:
                    await self.client.remove_remote(remote)
                await self.client.add_remote(remote, remote_url)
                return GuardedOperationOutcome.completed("add-remote", detail=f"Added remote '{remote}'")

            return await self.orchestrator.run_exclusive("add-remote", add)
        return await self._run("add-remote", body)

    async def initial_commit(
        self, message: Optional[str] = None, push: Optional[bool] = None
    ) -> GuardedOperationOutcome:
        """Stage everything, commit, and optionally push with upstream tracking."""
        async def body():
            await self._require_repository()
            status = await self.client.get_status()
            if not (status.modified or status.created or status.deleted or status.not_added):
                raise PreconditionFailedError("There is nothing to commit")

            commit_message = message
            if commit_message is None:
                commit_message = _require_answer(
                    await self.prompter.input_text("Commit message", validate_commit_message, default="Initial commit"),
                    "commit message",
                )
            else:
                error = validate_commit_message(commit_message)
                if error:
                    raise InvalidArgumentError("commit", error)

            remote = self.config.remote_name
            should_push = False
            if remote in {info.name for info in await self.client.get_remotes()}:
                should_push = push
                if should_push is None:
                    should_push = await self.prompter.confirm(f"Push the commit to '{remote}'?")

            async def commit():
                await self.client.add_all()
                try:
                    commit_hash = await self.client.commit(commit_message)
                except RepositoryError:
                    # Files were staged even though the commit failed
                    await self.bus.publish()
                    raise
                detail = f"Committed {commit_hash[:7]}"
                if not should_push:
                    return GuardedOperationOutcome.completed("initial-commit", detail=detail)
                try:
                    await self.client.push_set_upstream(remote)
                except RepositoryError as e:
                    return GuardedOperationOutcome.manual_recovery(
                        "initial-commit",
                        OutcomeReason.PUSH_FAILED,
                        NEXT_ACTION_PUSH_FAILED,
                        detail=f"{detail}, but the push failed: {e}",
                        error=e,
                    )
                return GuardedOperationOutcome.completed("initial-commit", detail=f"{detail} and pushed to '{remote}'")

            return await self.orchestrator.run_exclusive("initial-commit", commit)
        return await self._run("initial-commit", body)

    async def clone_repository(self, url: Optional[str] = None, target: Optional[str] = None) -> GuardedOperationOutcome:
        async def body():
            repo_url = url
            if repo_url is None:
                repo_url = _require_answer(
                    await self.prompter.input_text("Repository URL", validate_clone_url), "repository URL"
                )
            else:
                error = validate_clone_url(repo_url)
                if error:
                    raise InvalidArgumentError("clone", error)

            destination = target
            if destination is None:
                default = os.path.basename(repo_url.rstrip("/")).split(":")[-1]
                if default.endswith(".git"):
                    default = default[:-4]
                destination = _require_answer(
                    await self.prompter.input_text("Clone into directory", default=default or None),
                    "clone target",
                )
            destination = os.path.join(os.path.abspath(self.repo_path), destination)

            cloned = await self.client.clone(repo_url, destination)
            return GuardedOperationOutcome.completed("clone", detail=f"Cloned into '{cloned}'")
        return await self._run("clone", body)

    async def refresh(self) -> GuardedOperationOutcome:
        """Ask every view to reload."""
        await self.bus.publish()
        return GuardedOperationOutcome.completed("refresh")
