"""Guarded working-copy mutations: pull, push, checkout and merge"""

import asyncio
from functools import partial
from typing import Awaitable, Callable, Dict, Optional, Union, TYPE_CHECKING

from git_assistant.constants import CHOICE_PROCEED, CHOICE_STASH, GUARD_CHOICES, REMOTE_BRANCH_PREFIX
from git_assistant.exceptions import ExternalToolError, NotARepositoryError, RepositoryError
from git_assistant.logging_config import get_logger
from git_assistant.models.operation import (
    GuardedOperationOutcome,
    GuardState,
    OutcomeReason,
    StashGuardState,
)

if TYPE_CHECKING:
    from git_assistant.config import Config
    from git_assistant.services.git.client import RepositoryClient
    from git_assistant.services.notification_bus import ChangeNotificationBus
    from git_assistant.ui.prompts import Prompter

logger = get_logger(__name__)

Primary = Callable[[], Awaitable[None]]

NEXT_ACTION_STASH_PENDING = (
    "Your changes are saved in the stash. Fix the problem, then run 'git stash pop' to restore them."
)
NEXT_ACTION_POP_CONFLICT = (
    "Restoring your stashed changes caused conflicts. Resolve them with 'git-assistant resolve', "
    "then drop the kept stash entry with 'git stash drop'."
)
NEXT_ACTION_POP_FAILED = (
    "Your changes could not be restored and are still in the stash. "
    "Run 'git stash pop' once the working copy allows it."
)
NEXT_ACTION_MERGE_CONFLICT = (
    "Resolve the conflicts with 'git-assistant resolve', mark each file with "
    "'git-assistant mark-resolved', then commit."
)


class MutationOrchestrator:
    """Sequences repository mutations against a possibly dirty working copy.

    Only one guarded operation runs at a time; a second request while one is
    in flight is refused rather than queued. Every operation returns a
    GuardedOperationOutcome and publishes on the bus when it may have changed
    the working copy.
    """

    def __init__(
        self,
        client: "RepositoryClient",
        prompter: "Prompter",
        bus: "ChangeNotificationBus",
        config: Union["Config", dict],
    ):
        self.client = client
        self.prompter = prompter
        self.bus = bus
        self.config = config
        self._lock = asyncio.Lock()

    @property
    def in_progress(self) -> bool:
        return self._lock.locked()

    async def _single_flight(
        self, operation: str, runner: Callable[[], Awaitable[GuardedOperationOutcome]]
    ) -> GuardedOperationOutcome:
        if self._lock.locked():
            logger.warning(f"Refusing '{operation}': another operation is in progress")
            return GuardedOperationOutcome.aborted(
                operation,
                OutcomeReason.OPERATION_IN_PROGRESS,
                detail="Another git operation is still running",
            )

        async with self._lock:
            logger.info(f"Starting '{operation}'")
            outcome = await runner()
            logger.info(f"'{operation}' finished: {outcome.kind.value}"
                        + (f" ({outcome.reason.value})" if outcome.reason else ""))

        # Subscribers re-query the client, so publish after releasing the lock
        await self.bus.publish_for(outcome)
        return outcome

    @staticmethod
    def _query_failed(operation: str, error: RepositoryError) -> GuardedOperationOutcome:
        """Outcome for a failed read before anything was changed."""
        if isinstance(error, NotARepositoryError):
            return GuardedOperationOutcome.aborted(
                operation, OutcomeReason.PRECONDITION_FAILED, detail=str(error)
            )
        return GuardedOperationOutcome.failed(operation, error)

    # Guard-and-restore

    async def guarded_pull(self) -> GuardedOperationOutcome:
        """Pull, offering to stash uncommitted work first and restoring it after."""
        return await self._single_flight(
            "pull",
            partial(self._run_guarded, "pull", self.client.pull,
                    "You have uncommitted changes. Stash them before pulling?"),
        )

    async def guarded_checkout(self, name: str) -> GuardedOperationOutcome:
        """Switch branches, offering to stash uncommitted work first."""
        return await self._single_flight("checkout", partial(self._checkout, name))

    async def _checkout(self, name: str) -> GuardedOperationOutcome:
        if not name or not name.strip():
            return GuardedOperationOutcome.aborted(
                "checkout", OutcomeReason.INVALID_TARGET, detail="No branch given"
            )
        try:
            branches = await self.client.get_branches()
        except RepositoryError as e:
            return self._query_failed("checkout", e)

        if name == branches.current:
            return GuardedOperationOutcome.aborted(
                "checkout", OutcomeReason.ALREADY_ON_BRANCH, detail=f"Already on '{name}'"
            )

        return await self._run_guarded(
            "checkout",
            partial(self.client.checkout, name),
            f"You have uncommitted changes. Stash them before switching to '{name}'?",
        )

    async def _run_guarded(self, operation: str, primary: Primary, prompt: str) -> GuardedOperationOutcome:
        """Drive the stash guard state machine until it reaches a terminal state."""
        guard = StashGuardState(operation)
        handlers: Dict[GuardState, Callable[[StashGuardState], Awaitable[None]]] = {
            GuardState.IDLE: self._step_check_status,
            GuardState.STATUS_CHECKED: partial(self._step_choose, prompt=prompt),
            GuardState.STASHING: self._step_stash,
            GuardState.STASHED: self._step_stashed,
            GuardState.RUNNING: partial(self._step_primary, primary=primary),
            GuardState.PRIMARY_OK: self._step_after_primary,
            GuardState.RESTORE_PENDING: self._step_restore,
        }

        while not guard.is_terminal:
            await handlers[guard.state](guard)

        return self._guard_outcome(guard)

    @staticmethod
    def _advance(guard: StashGuardState, new_state: GuardState) -> None:
        logger.debug(f"[{guard.operation}] {guard.state.value} -> {new_state.value}")
        guard.advance(new_state)

    async def _step_check_status(self, guard: StashGuardState) -> None:
        try:
            guard.status = await self.client.get_status()
        except RepositoryError as e:
            guard.error = e
            self._advance(guard, GuardState.STATUS_FAILED)
            return
        self._advance(guard, GuardState.STATUS_CHECKED)

    async def _step_choose(self, guard: StashGuardState, prompt: str) -> None:
        if not guard.status.has_uncommitted_changes:
            self._advance(guard, GuardState.RUNNING)
            return

        choice = await self.prompter.choose(prompt, GUARD_CHOICES)
        logger.debug(f"[{guard.operation}] user chose {choice!r}")
        if choice == CHOICE_STASH:
            self._advance(guard, GuardState.STASHING)
        elif choice == CHOICE_PROCEED:
            self._advance(guard, GuardState.RUNNING)
        else:
            self._advance(guard, GuardState.CANCELLED)

    async def _step_stash(self, guard: StashGuardState) -> None:
        try:
            created = await self.client.stash(self.config.get("stash_message", "git-assistant auto-stash"))
        except RepositoryError as e:
            guard.error = e
            self._advance(guard, GuardState.STASH_FAILED)
            return

        if created:
            guard.has_stash = True
            self._advance(guard, GuardState.STASHED)
        else:
            logger.debug(f"[{guard.operation}] nothing was stashed")
            self._advance(guard, GuardState.RUNNING)

    async def _step_stashed(self, guard: StashGuardState) -> None:
        self._advance(guard, GuardState.RUNNING)

    async def _step_primary(self, guard: StashGuardState, primary: Primary) -> None:
        try:
            await primary()
        except RepositoryError as e:
            guard.error = e
            self._advance(guard, GuardState.PRIMARY_FAILED)
            return
        self._advance(guard, GuardState.PRIMARY_OK)

    async def _step_after_primary(self, guard: StashGuardState) -> None:
        self._advance(guard, GuardState.RESTORE_PENDING if guard.has_stash else GuardState.DONE)

    async def _step_restore(self, guard: StashGuardState) -> None:
        try:
            await self.client.stash_pop()
        except RepositoryError as e:
            guard.error = e
            self._advance(guard, GuardState.RESTORE_CONFLICT)
            return
        self._advance(guard, GuardState.RESTORED)

    @staticmethod
    def _guard_outcome(guard: StashGuardState) -> GuardedOperationOutcome:
        operation = guard.operation
        state = guard.state

        if state in (GuardState.DONE, GuardState.RESTORED):
            return GuardedOperationOutcome.completed(operation, stash_created=guard.has_stash)
        if state == GuardState.CANCELLED:
            return GuardedOperationOutcome.aborted(operation, OutcomeReason.USER_CANCELLED)
        if state == GuardState.STASH_FAILED:
            return GuardedOperationOutcome.aborted(
                operation, OutcomeReason.STASH_FAILED, detail=str(guard.error)
            )
        if state == GuardState.PRIMARY_FAILED and guard.has_stash:
            # Never pop onto a working copy the failed step may have left half-updated
            return GuardedOperationOutcome.manual_recovery(
                operation,
                OutcomeReason.STASH_PENDING,
                NEXT_ACTION_STASH_PENDING,
                detail=str(guard.error),
                error=guard.error,
                stash_created=True,
            )
        if state == GuardState.RESTORE_CONFLICT:
            conflict = isinstance(guard.error, ExternalToolError) and guard.error.conflict
            return GuardedOperationOutcome.manual_recovery(
                operation,
                OutcomeReason.STASH_POP_CONFLICT,
                NEXT_ACTION_POP_CONFLICT if conflict else NEXT_ACTION_POP_FAILED,
                detail=str(guard.error),
                error=guard.error,
                stash_created=True,
            )
        if state == GuardState.STATUS_FAILED:
            return MutationOrchestrator._query_failed(operation, guard.error)
        # PRIMARY_FAILED without a stash
        return GuardedOperationOutcome.failed(operation, guard.error)

    # Confirm-and-execute

    async def guarded_push(self) -> GuardedOperationOutcome:
        """Push committed work after checking there is something to push."""
        return await self._single_flight("push", self._push)

    async def _push(self) -> GuardedOperationOutcome:
        try:
            status = await self.client.get_status()
        except RepositoryError as e:
            return self._query_failed("push", e)

        if status.is_detached:
            return GuardedOperationOutcome.aborted(
                "push", OutcomeReason.INVALID_TARGET, detail="HEAD is detached; check out a branch first"
            )

        needs_upstream = status.tracking is None
        if needs_upstream:
            try:
                log = await self.client.get_log(limit=1)
            except RepositoryError as e:
                return GuardedOperationOutcome.failed("push", e)
            has_unpushed = log.total > 0
        else:
            has_unpushed = status.ahead > 0
        has_uncommitted = bool(status.modified or status.created or status.deleted)

        if not has_uncommitted and not has_unpushed:
            return GuardedOperationOutcome.aborted(
                "push", OutcomeReason.NOTHING_TO_PUSH, detail="No changes or commits to push"
            )
        if not has_unpushed:
            return GuardedOperationOutcome.aborted(
                "push",
                OutcomeReason.UNCOMMITTED_CHANGES,
                detail="You have uncommitted changes but no commits to push",
                next_action="Commit your changes first, then push",
            )

        remote = self.config.get("remote_name", "origin")
        if needs_upstream:
            message = f"Push '{status.current}' to '{remote}' and set it as upstream?"
        else:
            message = f"Push {status.ahead} commit(s) to '{status.tracking}'?"
        if has_uncommitted:
            message += " Only committed changes will be pushed."

        if self.config.get("confirm_push", True) and not await self.prompter.confirm(message):
            return GuardedOperationOutcome.aborted("push", OutcomeReason.USER_CANCELLED)

        try:
            if needs_upstream:
                await self.client.push_set_upstream(remote, status.current)
            else:
                await self.client.push()
        except RepositoryError as e:
            return GuardedOperationOutcome.failed("push", e)

        detail = (f"Pushed '{status.current}' to '{remote}'" if needs_upstream
                  else f"Pushed {status.ahead} commit(s)")
        return GuardedOperationOutcome.completed("push", detail=detail)

    async def merge(self, branch: str) -> GuardedOperationOutcome:
        """Merge ``branch`` into the current branch after confirmation."""
        return await self._single_flight("merge", partial(self._merge, branch))

    async def _merge(self, branch: str) -> GuardedOperationOutcome:
        if not branch or not branch.strip():
            return GuardedOperationOutcome.aborted(
                "merge", OutcomeReason.INVALID_TARGET, detail="No branch given"
            )
        try:
            status = await self.client.get_status()
        except RepositoryError as e:
            return self._query_failed("merge", e)

        if status.is_detached:
            return GuardedOperationOutcome.aborted(
                "merge", OutcomeReason.INVALID_TARGET, detail="HEAD is detached; check out a branch first"
            )
        if branch == status.current:
            return GuardedOperationOutcome.aborted(
                "merge", OutcomeReason.INVALID_TARGET, detail="Cannot merge a branch into itself"
            )
        if status.conflicted:
            return GuardedOperationOutcome.aborted(
                "merge",
                OutcomeReason.PRECONDITION_FAILED,
                detail=f"{len(status.conflicted)} file(s) still have unresolved conflicts",
                next_action=NEXT_ACTION_MERGE_CONFLICT,
            )

        target = branch[len(REMOTE_BRANCH_PREFIX):] if branch.startswith(REMOTE_BRANCH_PREFIX) else branch

        if self.config.get("confirm_merge", True):
            if not await self.prompter.confirm(f"Merge '{target}' into '{status.current}'?"):
                return GuardedOperationOutcome.aborted("merge", OutcomeReason.USER_CANCELLED)

        try:
            await self.client.merge(target)
        except ExternalToolError as e:
            if e.conflict:
                return GuardedOperationOutcome.manual_recovery(
                    "merge",
                    OutcomeReason.MERGE_CONFLICT,
                    NEXT_ACTION_MERGE_CONFLICT,
                    detail=e.message,
                    error=e,
                )
            return GuardedOperationOutcome.failed("merge", e)
        except RepositoryError as e:
            return GuardedOperationOutcome.failed("merge", e)

        return GuardedOperationOutcome.completed("merge", detail=f"Merged '{target}' into '{status.current}'")

    async def run_exclusive(
        self, operation: str, runner: Callable[[], Awaitable[GuardedOperationOutcome]]
    ) -> GuardedOperationOutcome:
        """Run another mutating command under the same single-flight rule."""
        return await self._single_flight(operation, runner)
