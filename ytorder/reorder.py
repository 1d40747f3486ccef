"""Reorder runs: snapshot -> plan -> execute, persisting progress as moves land."""

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from googleapiclient.discovery import Resource

from ytorder import api
from ytorder.executor import ExecutionMode, ExecutionResult, MoveExecutor, Mover
from ytorder.guard import QuotaExceededError, RemoteGuard, TransientRemoteError
from ytorder.logging import logger
from ytorder.models import Item, MoveOperation, Order
from ytorder.ordering import desired_order, find_duplicates
from ytorder.planner import get_planner
from ytorder.snapshot import Snapshot, load_snapshot, save_snapshot


@dataclass
class ReorderOutcome:
    """Everything a reorder run decided and did."""

    snapshot: Snapshot
    desired: list[str]
    plan: list[MoveOperation]
    result: ExecutionResult

    def to_dict(self) -> dict[str, Any]:
        return {
            "playlist_id": self.snapshot.playlist_id,
            "title": self.snapshot.title,
            **self.result.summary(),
            "moves": [entry.to_dict() for entry in self.result.entries],
        }


def fetch_snapshot(client: Resource, playlist_id: str) -> Snapshot:
    """Fetch a playlist fresh from the API and save it as the new snapshot."""
    snapshot = Snapshot(
        playlist_id=playlist_id,
        title=api.get_playlist_title(client, playlist_id),
        items=api.get_playlist_items(client, playlist_id),
        updated_at=datetime.now().isoformat(),
    )
    save_snapshot(snapshot)
    logger.info("Fetched '{}' ({} items)", snapshot.title, len(snapshot.items))
    return snapshot


def load_or_fetch(playlist_id: str, client: Resource | None = None, refresh: bool = False) -> Snapshot:
    """Use the saved snapshot unless ``refresh`` is set or none exists."""
    snapshot = None if refresh else load_snapshot(playlist_id)
    if snapshot is not None:
        return snapshot
    if client is None:
        raise FileNotFoundError(f"No snapshot for playlist {playlist_id}; fetch it first")
    return fetch_snapshot(client, playlist_id)


def reorder_playlist(
    snapshot: Snapshot,
    desired: Sequence[str] | None = None,
    *,
    sort_by: str = "date",
    planner: str = "minimal",
    mode: ExecutionMode | str = ExecutionMode.DRY_RUN,
    mover: Mover | None = None,
    guard: RemoteGuard | None = None,
    persist: bool = True,
) -> ReorderOutcome:
    """Plan and apply the moves that bring ``snapshot`` into the desired order.

    In live mode the snapshot is rewritten after every applied move, so an
    interrupted or halted run resumes from the real remaining gap.

    Args:
        snapshot: Current playlist state
        desired: Target order of video IDs; derived with ``sort_by`` when None
        sort_by: "date" or "title", used only when ``desired`` is None
        planner: "minimal" or "naive"
        mode: Dry run or live
        mover: Remote relocation primitive (live mode)
        guard: Rate/failure guard for remote calls
        persist: Save the snapshot after each applied live move

    Raises:
        DuplicateItemError: The playlist holds the same video twice (run dedup first).
        PlanPreconditionError: ``desired`` is not a permutation of the playlist.
    """
    mode = ExecutionMode(mode)
    order = snapshot.order()
    target = list(desired) if desired is not None else desired_order(order.items, sort_by)
    plan = get_planner(planner)(order.ids, target)

    if not plan:
        logger.info("No moves needed. Playlist '{}' is already sorted.", snapshot.title)
    else:
        logger.info(
            "{} {} moves to sort playlist '{}'",
            "Applying" if mode == ExecutionMode.LIVE else "Previewing",
            len(plan),
            snapshot.title,
        )

    on_applied: Callable[[Order], None] | None = None
    if mode == ExecutionMode.LIVE and persist:

        def on_applied(working: Order) -> None:
            save_snapshot(Snapshot.from_order(snapshot.playlist_id, working, snapshot.title))

    executor = MoveExecutor(mover=mover, guard=guard, on_applied=on_applied)
    result = executor.apply(order, plan, mode)
    logger.info(
        "Finished: {} applied, {} skipped, {} failed, {} not attempted",
        result.applied,
        result.skipped,
        result.failed,
        result.not_attempted,
    )
    return ReorderOutcome(snapshot=snapshot, desired=target, plan=plan, result=result)


@dataclass
class DedupResult:
    """Outcome of removing duplicate entries from a playlist."""

    kept: list[Item]
    duplicates: list[Item]
    removed: list[Item] = field(default_factory=list)
    failed: list[Item] = field(default_factory=list)
    halted: bool = False


def remove_duplicates(
    snapshot: Snapshot,
    remover: Callable[[str], Any] | None = None,
    guard: RemoteGuard | None = None,
    persist: bool = True,
) -> DedupResult:
    """Remove repeated videos, keeping each one's first occurrence.

    Without a ``remover`` this only reports what would be removed. Live
    removals follow the same policy as moves: a quota failure stops the run,
    other failures leave that entry in place.
    """
    kept, duplicates = find_duplicates(snapshot.items)
    result = DedupResult(kept=kept, duplicates=duplicates)
    if remover is None or not duplicates:
        return result

    guard = guard if guard is not None else RemoteGuard()
    for item in duplicates:
        if not item.handle:
            logger.warning("Duplicate {} has no playlist item handle; skipping", item.id)
            result.failed.append(item)
            continue
        try:
            guard.call("playlistItems.delete", remover, item.handle)
        except QuotaExceededError as e:
            logger.error("Stopping removals: {}", e)
            result.halted = True
            break
        except TransientRemoteError as e:
            logger.error("Failed to remove duplicate {}: {}", item.id, e)
            result.failed.append(item)
            continue

        result.removed.append(item)
        snapshot.items = [i for i in snapshot.items if i.handle != item.handle]
        if persist:
            save_snapshot(snapshot)
        logger.info("Removed duplicate {} (playlistItemId={})", item.id, item.handle)

    return result
