"""Move executor: applies a move plan in memory (dry run) or against YouTube (live)."""

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ytorder.guard import QuotaExceededError, RemoteGuard, TransientRemoteError
from ytorder.logging import logger
from ytorder.models import Item, MissingHandleError, MoveOperation, Order, ReferenceNotFoundError

# Remote relocation primitive: (item, target_position) -> anything
Mover = Callable[[Item, int], Any]


class ExecutionMode(str, Enum):
    """How a plan is applied."""

    DRY_RUN = "dry-run"
    LIVE = "live"


class MoveOutcome(str, Enum):
    """Terminal state of one move."""

    APPLIED = "applied"
    SKIPPED = "skipped"  # no remote handle
    FAILED = "failed"  # recoverable; item stays where it is
    HALTED = "halted"  # quota/rate limit; run stops here


class RunStatus(str, Enum):
    COMPLETED = "completed"
    HALTED = "halted"


@dataclass
class MoveLogEntry:
    """One line of the execution log."""

    index: int  # 1-based position in the plan
    id: str
    destination: str  # "to front" or "after <id>"
    outcome: MoveOutcome
    from_index: int | None = None
    from_after: str | None = None
    target_position: int | None = None
    error: str | None = None
    error_category: str | None = None

    def line(self) -> str:
        """Render as a single human-readable log line."""
        source = self.id
        if self.from_index is not None:
            source = f"{self.id} (from position {self.from_index})"
        text = f"{self.index}. Move {source} {self.destination}"
        if self.target_position is not None:
            text += f" -> position {self.target_position}"
        text += f": {self.outcome.value}"
        if self.error:
            text += f" ({self.error})"
        return text

    def to_dict(self) -> dict[str, Any]:
        return {
            "index": self.index,
            "id": self.id,
            "from_index": self.from_index,
            "from_after": self.from_after,
            "destination": self.destination,
            "target_position": self.target_position,
            "outcome": self.outcome.value,
            "error": self.error,
            "error_category": self.error_category,
        }


@dataclass
class ExecutionResult:
    """Outcome of applying a plan. ``order`` is the resulting order."""

    mode: ExecutionMode
    order: Order
    planned: int
    status: RunStatus = RunStatus.COMPLETED
    entries: list[MoveLogEntry] = field(default_factory=list)

    def _count(self, outcome: MoveOutcome) -> int:
        return sum(1 for e in self.entries if e.outcome == outcome)

    @property
    def applied(self) -> int:
        return self._count(MoveOutcome.APPLIED)

    @property
    def skipped(self) -> int:
        return self._count(MoveOutcome.SKIPPED)

    @property
    def failed(self) -> int:
        return self._count(MoveOutcome.FAILED)

    @property
    def attempted(self) -> int:
        """Moves carried out against the order, whether they took or not."""
        return self.applied + self.failed

    @property
    def halted_moves(self) -> int:
        return self._count(MoveOutcome.HALTED)

    @property
    def not_attempted(self) -> int:
        """Moves left for a later run, including the one that hit the quota."""
        return self.planned - self.applied - self.skipped - self.failed

    @property
    def halted(self) -> bool:
        return self.status == RunStatus.HALTED

    @property
    def log(self) -> list[str]:
        return [entry.line() for entry in self.entries]

    def summary(self) -> dict[str, Any]:
        return {
            "mode": self.mode.value,
            "status": self.status.value,
            "planned": self.planned,
            "attempted": self.attempted,
            "applied": self.applied,
            "skipped": self.skipped,
            "failed": self.failed,
            "halted": self.halted_moves,
            "not_attempted": self.not_attempted,
            "final_order": self.order.ids,
        }


class MoveExecutor:
    """Applies move plans one operation at a time.

    Args:
        mover: Remote relocation primitive, required for live runs
        guard: Rate/failure guard wrapping each remote call
        on_applied: Called with the working order after every applied live move
            (used to persist the snapshot)
        operation: Quota operation name charged per move
    """

    def __init__(
        self,
        mover: Mover | None = None,
        guard: RemoteGuard | None = None,
        on_applied: Callable[[Order], None] | None = None,
        operation: str = "playlistItems.update",
    ) -> None:
        self.mover = mover
        self.guard = guard if guard is not None else RemoteGuard()
        self.on_applied = on_applied
        self.operation = operation

    def apply(
        self,
        order: Order,
        plan: Sequence[MoveOperation],
        mode: ExecutionMode | str = ExecutionMode.DRY_RUN,
    ) -> ExecutionResult:
        """Apply ``plan`` to a copy of ``order``; ``order`` itself is never mutated."""
        mode = ExecutionMode(mode)
        mover = self.mover if mode == ExecutionMode.LIVE else None
        if mode == ExecutionMode.LIVE and mover is None:
            raise ValueError("Live execution needs a mover")

        working = order.copy()
        result = ExecutionResult(mode=mode, order=working, planned=len(plan))
        logger.debug("Applying {} moves ({})", len(plan), mode.value)

        for index, move in enumerate(plan, start=1):
            if mover is None:
                entry = self._simulate(working, index, move)
            else:
                entry = self._apply_live(working, index, move, mover)
            result.entries.append(entry)
            self._log(entry)
            if entry.outcome == MoveOutcome.HALTED:
                result.status = RunStatus.HALTED
                logger.error(
                    "Stopping after {} of {} moves; {} left for the next run",
                    index - 1,
                    len(plan),
                    result.not_attempted,
                )
                break

        return result

    def _entry(self, working: Order, index: int, move: MoveOperation) -> MoveLogEntry:
        entry = MoveLogEntry(
            index=index, id=move.id, destination=move.describe(), outcome=MoveOutcome.FAILED
        )
        if move.id in working:
            entry.from_index = working.index(move.id)
            entry.from_after = working.predecessor(move.id)
        return entry

    def _simulate(self, working: Order, index: int, move: MoveOperation) -> MoveLogEntry:
        entry = self._entry(working, index, move)
        try:
            entry.target_position = working.relocate(move.id, move.after_id)
        except ReferenceNotFoundError as e:
            entry.error = str(e)
            return entry
        if not working.get(move.id).handle:
            logger.debug("Video {} has no playlist item handle; a live run would skip it", move.id)
        entry.outcome = MoveOutcome.APPLIED
        return entry

    def _apply_live(
        self, working: Order, index: int, move: MoveOperation, mover: Mover
    ) -> MoveLogEntry:
        entry = self._entry(working, index, move)
        try:
            working.handle_for(move.id)
            target = working.target_position(move.id, move.after_id)
        except MissingHandleError as e:
            entry.outcome = MoveOutcome.SKIPPED
            entry.error = str(e)
            return entry
        except ReferenceNotFoundError as e:
            entry.error = str(e)
            return entry

        entry.target_position = target
        try:
            self.guard.call(self.operation, mover, working.get(move.id), target)
        except QuotaExceededError as e:
            entry.outcome = MoveOutcome.HALTED
            entry.error = str(e)
            entry.error_category = e.category.name
            return entry
        except TransientRemoteError as e:
            entry.error = str(e)
            entry.error_category = e.category.name
            return entry

        working.relocate(move.id, move.after_id)
        if self.on_applied is not None:
            self.on_applied(working)
        entry.outcome = MoveOutcome.APPLIED
        return entry

    @staticmethod
    def _log(entry: MoveLogEntry) -> None:
        if entry.outcome == MoveOutcome.APPLIED:
            logger.info("  {}", entry.line())
        elif entry.outcome == MoveOutcome.SKIPPED:
            logger.warning("  {}", entry.line())
        else:
            logger.error("  {}", entry.line())
