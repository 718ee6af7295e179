"""
Tests for the pure course chain helpers.

Covers traversal, legacy fallback, move planning, diagnosis and fragment
collection without touching the database.
"""
from types import SimpleNamespace

import pytest

from app.utils.chain import (
    build_ordered_list,
    build_predecessor_index,
    collect_fragments,
    diagnose,
    legacy_sort_key,
    order_by_legacy_index,
    plan_move,
    resolve_order,
)


def make(id, next=None, order_index=None):
    return SimpleNamespace(id=id, next_course_id=next, order_index=order_index)


def ids(traversal):
    return [entry.course.id for entry in traversal.entries]


class TestBuildOrderedList:
    """Tests for build_ordered_list()."""

    def test_valid_chain_visits_every_record_once(self):
        """Test that a valid chain yields positions 1..N without gaps."""
        records = [make("C"), make("A", "B"), make("B", "C")]

        traversal = build_ordered_list(records, "A")

        assert ids(traversal) == ["A", "B", "C"]
        assert [entry.display_order for entry in traversal.entries] == [1, 2, 3]
        assert traversal.is_complete
        assert traversal.missing_count == 0
        assert not traversal.fallback

    def test_cycle_stops_traversal_with_prefix(self):
        """Test that a cycle terminates traversal and returns the non-cyclic prefix."""
        records = [make("A", "B"), make("B", "C"), make("C", "B")]

        traversal = build_ordered_list(records, "A")

        assert ids(traversal) == ["A", "B", "C"]
        assert traversal.cycle_detected is True
        assert traversal.is_complete is False

    def test_self_loop_is_a_cycle(self):
        """Test that a record pointing at itself is reported as a cycle."""
        traversal = build_ordered_list([make("A", "A"), make("B")], "A")

        assert ids(traversal) == ["A"]
        assert traversal.cycle_detected is True
        assert traversal.missing_count == 1

    def test_dangling_pointer_stops_traversal(self):
        """Test that a pointer to an unknown id ends the walk and is reported."""
        records = [make("A", "ghost"), make("B")]

        traversal = build_ordered_list(records, "A")

        assert ids(traversal) == ["A"]
        assert traversal.dangling_id == "ghost"
        assert traversal.missing_count == 1

    def test_unreachable_records_are_counted(self):
        """Test that orphans show up as missing, not as an error."""
        records = [make("A", "B"), make("B"), make("orphan")]

        traversal = build_ordered_list(records, "A")

        assert ids(traversal) == ["A", "B"]
        assert traversal.missing_count == 1
        assert traversal.cycle_detected is False

    def test_healthy_chain_without_slack(self):
        """Test that a complete chain is not cut short at slack 0."""
        records = [make("A", "B"), make("B")]

        traversal = build_ordered_list(records, "A", slack=0)

        assert ids(traversal) == ["A", "B"]
        assert traversal.runaway is False
        assert traversal.is_complete

    def test_step_limit_aborts_traversal(self):
        """Test that the walk stops once the step limit is used up."""
        records = [make("A", "B"), make("B", "C"), make("C")]

        traversal = build_ordered_list(records, "A", slack=-1)

        assert ids(traversal) == ["A", "B"]
        assert traversal.runaway is True
        assert traversal.is_complete is False


class TestResolveOrder:
    """Tests for resolve_order() chain vs. legacy selection."""

    def test_empty_collection(self):
        """Test that no records yields an empty, complete result."""
        traversal = resolve_order([], True, None)

        assert traversal.entries == []
        assert traversal.is_complete

    def test_missing_metadata_falls_back_to_legacy_index(self):
        """Test fallback when the chain was never initialized."""
        records = [make("B", order_index=2), make("A", order_index=1), make("C", order_index=3)]

        traversal = resolve_order(records, False, None)

        assert traversal.fallback is True
        assert ids(traversal) == ["A", "B", "C"]
        assert [entry.display_order for entry in traversal.entries] == [1, 2, 3]

    def test_null_head_with_records_falls_back(self):
        """Test fallback when metadata exists but head is null."""
        records = [make("A", order_index=1), make("B", order_index=2)]

        traversal = resolve_order(records, True, None)

        assert traversal.fallback is True

    def test_unknown_head_falls_back(self):
        """Test fallback when head points at a course that does not exist."""
        records = [make("A", order_index=1), make("B", order_index=2)]

        traversal = resolve_order(records, True, "deleted")

        assert traversal.fallback is True
        assert ids(traversal) == ["A", "B"]

    def test_valid_head_uses_chain_not_legacy_index(self):
        """Test that the chain wins over the legacy index once initialized."""
        records = [make("A", None, order_index=1), make("B", "A", order_index=2)]

        traversal = resolve_order(records, True, "B")

        assert traversal.fallback is False
        assert ids(traversal) == ["B", "A"]


class TestLegacyOrdering:
    """Tests for legacy index ordering."""

    def test_records_without_index_sort_last_by_id(self):
        """Test that unindexed records come after indexed ones, ties by id."""
        records = [make("z"), make("b", order_index=5), make("a"), make("c", order_index=1)]

        traversal = order_by_legacy_index(records)

        assert ids(traversal) == ["c", "b", "a", "z"]

    def test_sort_key_breaks_ties_by_id(self):
        """Test that equal legacy values are ordered by id."""
        assert legacy_sort_key(make("a", order_index=1)) < legacy_sort_key(make("b", order_index=1))


class TestPlanMove:
    """Tests for plan_move()."""

    def test_move_after_target(self):
        """Test moving A below C in A -> B -> C."""
        plan = plan_move("A", "B", "C", None, None, "A")

        assert plan.updates == [("A", None), ("C", "A")]
        assert plan.new_head == "B"
        assert plan.head_changed is True

    def test_move_to_head_rewires_predecessor(self):
        """Test moving C to head in A -> B -> C."""
        plan = plan_move("C", None, None, None, "B", "A")

        assert plan.updates == [("B", None), ("C", "A")]
        assert plan.new_head == "C"

    def test_move_after_successor(self):
        """Test moving B below C in A -> B -> C -> D."""
        plan = plan_move("B", "C", "C", "D", "A", "A")

        assert plan.updates == [("A", "C"), ("B", "D"), ("C", "B")]
        assert plan.head_changed is False

    def test_move_after_itself_is_noop(self):
        """Test that moving a course below itself is a no-op."""
        plan = plan_move("A", "B", "A", "B", None, "A")

        assert plan.is_noop is True
        assert plan.updates == []
        assert plan.head_changed is False

    def test_move_after_current_predecessor_is_noop(self):
        """Test that moving a course below its predecessor changes nothing."""
        plan = plan_move("B", "C", "A", "B", "A", "A")

        assert plan.is_noop is True

    def test_move_head_to_head_is_noop(self):
        """Test that moving the head to the first position changes nothing."""
        plan = plan_move("A", "B", None, None, None, "A")

        assert plan.is_noop is True

    def test_self_loop_is_not_treated_as_predecessor(self):
        """Test moving a course that points at itself below another course."""
        plan = plan_move("B", "B", "A", "C", "B", "A")

        assert plan.updates == [("B", "C"), ("A", "B")]
        assert plan.head_changed is False

    @pytest.mark.parametrize(
        "course_id,target_id",
        [("C", None), ("D", "A"), ("B", "D"), ("A", "C"), ("D", None), ("A", "D")],
    )
    def test_partial_writes_never_create_a_cycle(self, course_id, target_id):
        """Test that stopping after any number of writes leaves no cycle."""
        chain = {"A": "B", "B": "C", "C": "D", "D": None}
        predecessor = next((cid for cid, nxt in chain.items() if nxt == course_id), None)
        plan = plan_move(
            course_id,
            chain[course_id],
            target_id,
            chain[target_id] if target_id is not None else None,
            predecessor,
            "A",
        )

        for applied in range(len(plan.updates) + 1):
            pointers = dict(chain)
            pointers.update(plan.updates[:applied])
            records = [make(cid, nxt) for cid, nxt in pointers.items()]

            for head in ("A", plan.new_head):
                traversal = build_ordered_list(records, head)
                assert traversal.cycle_detected is False
                assert traversal.runaway is False

        assert ids(build_ordered_list(records, plan.new_head)) != ["A", "B", "C", "D"]
        assert build_ordered_list(records, plan.new_head).is_complete


class TestDiagnose:
    """Tests for diagnose()."""

    def test_healthy_chain(self):
        """Test that a valid chain is reported healthy."""
        records = [make("A", "B"), make("B", "C"), make("C")]

        report = diagnose(records, True, "A")

        assert report.healthy is True
        assert report.reachable == 3
        assert report.tail_count == 1
        assert report.unreachable_ids == []

    def test_reports_shared_successor_and_unreachable(self):
        """Test that two predecessors for one course and orphans are reported."""
        records = [make("A", "C"), make("B", "C"), make("C")]

        report = diagnose(records, True, "A")

        assert report.healthy is False
        assert report.shared_successor_ids == ["C"]
        assert report.unreachable_ids == ["B"]

    def test_invalid_head(self):
        """Test that a head pointing nowhere is reported."""
        report = diagnose([make("A")], True, "gone")

        assert report.head_valid is False
        assert report.reachable == 0
        assert report.healthy is False

    def test_empty_collection_is_healthy(self):
        """Test that an empty collection with null head is healthy."""
        assert diagnose([], True, None).healthy is True


class TestCollectFragments:
    """Tests for collect_fragments()."""

    def test_reachable_part_first_then_fragments(self):
        """Test ordering reachable prefix, then detached fragments in legacy order."""
        records = [
            make("A", "B", order_index=5),
            make("B", None, order_index=6),
            make("X", "Y", order_index=2),
            make("Y", None, order_index=1),
            make("Z", None, order_index=3),
        ]

        ordered = collect_fragments(records, "A")

        assert [record.id for record in ordered] == ["A", "B", "X", "Y", "Z"]

    def test_cycle_remnants_are_included_once(self):
        """Test that courses only reachable through a cycle are still placed."""
        records = [
            make("A", None, order_index=1),
            make("P", "Q", order_index=3),
            make("Q", "P", order_index=2),
        ]

        ordered = collect_fragments(records, "A")

        assert [record.id for record in ordered] == ["A", "Q", "P"]

    def test_without_head_uses_legacy_starts(self):
        """Test that missing metadata still yields every course."""
        records = [make("B", order_index=2), make("A", "B", order_index=1)]

        ordered = collect_fragments(records, None)

        assert [record.id for record in ordered] == ["A", "B"]


def test_predecessor_index_lists_every_pointer():
    """Test that the reverse index records all predecessors per target."""
    records = [make("A", "C"), make("B", "C"), make("C")]

    assert build_predecessor_index(records) == {"C": ["A", "B"]}
