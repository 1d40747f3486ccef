"""Tests for ytorder.planner."""

import random

import pytest

from ytorder.models import Item, MoveOperation, ReferenceNotFoundError
from ytorder.ordering import desired_order
from ytorder.planner import (
    PlanPreconditionError,
    apply_moves,
    find_skeleton,
    get_planner,
    longest_increasing_subsequence,
    plan_moves,
    plan_moves_naive,
)


def random_permutations(seed: int, trials: int, max_len: int) -> list[tuple[list[str], list[str]]]:
    """Pairs of (current, desired) permutations of the same ids."""
    rng = random.Random(seed)
    pairs = []
    for _ in range(trials):
        n = rng.randint(0, max_len)
        desired = [f"v{i}" for i in range(n)]
        current = desired[:]
        rng.shuffle(current)
        # Mostly-sorted playlists are the common case: only a few items out of place
        if rng.random() < 0.5 and n > 1:
            current = desired[:]
            for _ in range(rng.randint(1, 3)):
                item = current.pop(rng.randrange(n))
                current.insert(rng.randrange(n), item)
        pairs.append((current, desired))
    return pairs


class TestLongestIncreasingSubsequence:
    """Tests for longest_increasing_subsequence."""

    def test_empty(self) -> None:
        assert longest_increasing_subsequence([]) == []

    def test_sorted_input_is_whole_sequence(self) -> None:
        assert longest_increasing_subsequence([0, 1, 2, 3]) == [0, 1, 2, 3]

    def test_reversed_input_has_length_one(self) -> None:
        assert len(longest_increasing_subsequence([3, 2, 1, 0])) == 1

    def test_returns_indices(self) -> None:
        """Indices of 1, 2, 4 in [3, 1, 2, 5, 4]."""
        assert longest_increasing_subsequence([3, 1, 2, 5, 4]) == [1, 2, 4]

    def test_strictly_increasing(self) -> None:
        """Equal values never extend a run."""
        assert len(longest_increasing_subsequence([1, 1, 1])) == 1
        assert len(longest_increasing_subsequence([1, 2, 2, 3])) == 3

    def test_skips_none(self) -> None:
        assert longest_increasing_subsequence([None, 2, None, 1, 3]) == [3, 4]

    def test_length_matches_quadratic_reference(self) -> None:
        """Same length as the O(n^2) dynamic program on random inputs."""
        rng = random.Random(7)
        for _ in range(200):
            values = [rng.randint(0, 20) for _ in range(rng.randint(0, 25))]
            best = [1] * len(values)
            for i in range(len(values)):
                for j in range(i):
                    if values[j] < values[i]:
                        best[i] = max(best[i], best[j] + 1)
            expected = max(best, default=0)
            lis = longest_increasing_subsequence(values)
            assert len(lis) == expected
            picked = [values[i] for i in lis]
            assert all(a < b for a, b in zip(picked, picked[1:]))
            assert lis == sorted(lis)


class TestFindSkeleton:
    def test_one_item_out_of_place(self) -> None:
        assert find_skeleton(["D", "A", "B", "C"], ["A", "B", "C", "D"]) == {"A", "B", "C"}

    def test_sorted(self) -> None:
        assert find_skeleton(["a", "b"], ["a", "b"]) == {"a", "b"}


class TestPlanMoves:
    """Tests for the skeleton-preserving planner."""

    def test_single_item_moved_to_end(self) -> None:
        current = ["D", "A", "B", "C"]
        desired = ["A", "B", "C", "D"]
        plan = plan_moves(current, desired)
        assert plan == [MoveOperation("D", "C")]
        assert apply_moves(current, plan) == desired

    def test_already_sorted_is_empty(self) -> None:
        assert plan_moves(["a", "b", "c"], ["a", "b", "c"]) == []

    def test_empty_playlist(self) -> None:
        assert plan_moves([], []) == []

    def test_move_to_front(self) -> None:
        plan = plan_moves(["b", "c", "a"], ["a", "b", "c"])
        assert plan == [MoveOperation("a", None)]

    def test_reversed(self) -> None:
        """Reverse order keeps only one item in place."""
        current = ["D", "C", "B", "A"]
        desired = ["A", "B", "C", "D"]
        plan = plan_moves(current, desired)
        assert plan == [MoveOperation("B", "A"), MoveOperation("C", "B"), MoveOperation("D", "C")]
        assert apply_moves(current, plan) == desired

    def test_chronological_sort(self) -> None:
        """Ten videos sorted by original file date."""
        dates = {
            "fCZDPWx1tjk": "2025-06-30T12:59:00Z",
            "3UjAoqdTSg0": "2025-06-30T17:17:00Z",
            "t9tIsbDQZcQ": "2025-06-30T18:34:00Z",
            "N0AQYKK7fnI": "2025-07-01T08:06:00Z",
            "-SaBsvHvSn4": "2025-07-01T09:01:00Z",
            "RL5l0nL3USM": "2025-07-03T08:34:00Z",
            "0EiSDg7tzIU": "2025-07-01T08:05:00Z",
            "hV5xJWG47H4": "2025-07-03T08:37:00Z",
            "wLhM9Q62Vi4": "2025-06-30T16:09:00Z",
            "Yi-h2rAO7-Y": "2025-07-03T21:20:00Z",
        }
        current = list(dates)
        desired = sorted(current, key=dates.__getitem__)
        plan = plan_moves(current, desired)
        assert apply_moves(current, plan) == desired
        assert len(plan) == len(current) - len(find_skeleton(current, desired))
        assert len(plan) == 2

    def test_precondition_missing_ids(self) -> None:
        """Orders over different sets are rejected, never reconciled."""
        with pytest.raises(PlanPreconditionError) as exc_info:
            plan_moves(["a", "b"], ["a", "c"])
        assert exc_info.value.only_current == ["b"]
        assert exc_info.value.only_desired == ["c"]

    def test_precondition_duplicates(self) -> None:
        with pytest.raises(PlanPreconditionError) as exc_info:
            plan_moves(["a", "a", "b"], ["a", "b", "a"])
        assert exc_info.value.duplicates == ["a"]

    def test_precondition_error_is_value_error(self) -> None:
        with pytest.raises(ValueError, match="missing from desired order"):
            plan_moves(["a", "b"], ["a"])


class TestPlanProperties:
    """Properties checked over many seeded random permutations."""

    @pytest.mark.parametrize("seed", [1, 2, 3, 4, 5])
    def test_plan_reaches_desired(self, seed: int) -> None:
        for current, desired in random_permutations(seed, trials=100, max_len=40):
            plan = plan_moves(current, desired)
            assert apply_moves(current, plan) == desired

    @pytest.mark.parametrize("seed", [11, 12, 13])
    def test_plan_length_is_n_minus_skeleton(self, seed: int) -> None:
        for current, desired in random_permutations(seed, trials=100, max_len=40):
            plan = plan_moves(current, desired)
            skeleton = find_skeleton(current, desired)
            assert len(plan) == len(current) - len(skeleton)
            assert len(plan) <= max(len(current) - 1, 0)
            assert not skeleton & {move.id for move in plan}

    @pytest.mark.parametrize("seed", [21, 22, 23])
    def test_replanning_after_full_application_is_empty(self, seed: int) -> None:
        """Idempotence: once a plan is applied there is nothing left to move."""
        for current, desired in random_permutations(seed, trials=100, max_len=40):
            result = apply_moves(current, plan_moves(current, desired))
            assert plan_moves(result, desired) == []

    @pytest.mark.parametrize("seed", [31, 32])
    def test_never_worse_than_naive(self, seed: int) -> None:
        for current, desired in random_permutations(seed, trials=100, max_len=30):
            assert len(plan_moves(current, desired)) <= len(plan_moves_naive(current, desired))

    @pytest.mark.parametrize("seed", [41, 42])
    def test_partial_application_then_replan(self, seed: int) -> None:
        """After applying any prefix, a fresh plan is exactly the remaining length."""
        rng = random.Random(seed)
        for current, desired in random_permutations(seed, trials=60, max_len=30):
            plan = plan_moves(current, desired)
            done = rng.randint(0, len(plan))
            partial = apply_moves(current, plan[:done])
            replan = plan_moves(partial, desired)
            assert len(replan) == len(plan) - done
            assert apply_moves(partial, replan) == desired


class TestTimestampTieRegression:
    """Sorting by date twice must not report further moves, even with equal dates."""

    def test_resort_after_sort_is_stable(self) -> None:
        rng = random.Random(99)
        dates = ["2025-07-01T19:19:00Z", "2025-07-02T13:27:00Z", "2025-07-03T10:09:00Z"]
        items = [
            Item(id=f"v{i}", published_at=rng.choice(dates), recorded_at=None) for i in range(30)
        ]
        rng.shuffle(items)
        current = [item.id for item in items]
        desired = desired_order(items)
        result = apply_moves(current, plan_moves(current, desired))
        assert result == desired

        by_id = {item.id: item for item in items}
        resorted = desired_order([by_id[i] for i in result])
        assert resorted == result
        assert plan_moves(result, resorted) == []


class TestPlanMovesNaive:
    """Tests for the fallback planner."""

    def test_moves_every_misplaced_item(self) -> None:
        current = ["D", "A", "B", "C"]
        desired = ["A", "B", "C", "D"]
        plan = plan_moves_naive(current, desired)
        assert plan == [
            MoveOperation("A", None),
            MoveOperation("B", "A"),
            MoveOperation("C", "B"),
        ]
        assert apply_moves(current, plan) == desired

    def test_sorted_is_empty(self) -> None:
        assert plan_moves_naive(["a", "b"], ["a", "b"]) == []

    @pytest.mark.parametrize("seed", [51, 52])
    def test_reaches_desired(self, seed: int) -> None:
        for current, desired in random_permutations(seed, trials=100, max_len=30):
            plan = plan_moves_naive(current, desired)
            assert apply_moves(current, plan) == desired
            assert len(plan) <= max(len(current) - 1, 0)


class TestApplyMoves:
    def test_does_not_mutate_input(self) -> None:
        current = ["b", "a"]
        assert apply_moves(current, [MoveOperation("a", None)]) == ["a", "b"]
        assert current == ["b", "a"]

    def test_unknown_id_raises(self) -> None:
        with pytest.raises(ReferenceNotFoundError):
            apply_moves(["a", "b"], [MoveOperation("z", "a")])


class TestGetPlanner:
    def test_known_planners(self) -> None:
        assert get_planner("minimal") is plan_moves
        assert get_planner("naive") is plan_moves_naive

    def test_unknown_planner(self) -> None:
        with pytest.raises(ValueError, match="Unknown planner"):
            get_planner("magic")
