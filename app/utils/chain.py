"""
Pure helpers for the linked-list course order.

Nothing in here touches the database: callers load rows, hand them in, and
apply whatever pointer writes the helpers compute. Records only need ``id``,
``next_course_id`` and ``order_index`` attributes.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple
import logging

logger = logging.getLogger(__name__)


@dataclass
class OrderedCourse:
    """A course paired with its 1-based display position."""

    course: Any
    display_order: int


@dataclass
class ChainTraversal:
    """
    Result of reading the course order.

    ``entries`` is always usable; the flags describe how trustworthy it is.
    A chain that is cut short is reported here instead of raised.
    """

    entries: List[OrderedCourse] = field(default_factory=list)
    total: int = 0
    fallback: bool = False
    cycle_detected: bool = False
    runaway: bool = False
    dangling_id: Optional[str] = None

    @property
    def missing_count(self) -> int:
        return max(self.total - len(self.entries), 0)

    @property
    def is_complete(self) -> bool:
        return self.missing_count == 0 and not self.cycle_detected and not self.runaway

    @property
    def courses(self) -> List[Any]:
        return [entry.course for entry in self.entries]


@dataclass
class MovePlan:
    """Pointer writes needed to relocate one course."""

    updates: List[Tuple[str, Optional[str]]] = field(default_factory=list)
    old_head: Optional[str] = None
    new_head: Optional[str] = None
    is_noop: bool = False

    @property
    def head_changed(self) -> bool:
        return not self.is_noop and self.new_head != self.old_head


@dataclass
class ChainDiagnosis:
    """Read-only health report of the stored chain."""

    total: int
    reachable: int
    metadata_exists: bool
    head_id: Optional[str]
    head_valid: bool
    cycle_detected: bool = False
    dangling_id: Optional[str] = None
    unreachable_ids: List[str] = field(default_factory=list)
    shared_successor_ids: List[str] = field(default_factory=list)
    tail_count: int = 0

    @property
    def healthy(self) -> bool:
        if self.total == 0:
            return self.head_id is None
        return (
            self.head_valid
            and self.reachable == self.total
            and not self.cycle_detected
            and self.dangling_id is None
            and not self.shared_successor_ids
        )


def legacy_sort_key(record: Any) -> Tuple[bool, int, str]:
    """Sort key for the legacy index: ascending, unindexed rows last, ties by id."""
    order_index = record.order_index
    return (order_index is None, order_index if order_index is not None else 0, record.id)


def order_by_legacy_index(records: Sequence[Any]) -> ChainTraversal:
    """
    Order records by the legacy ``order_index`` field.

    Used when no usable chain head exists. Positions are 1..N.
    """
    ordered = sorted(records, key=legacy_sort_key)
    return ChainTraversal(
        entries=[OrderedCourse(record, position) for position, record in enumerate(ordered, start=1)],
        total=len(records),
        fallback=True,
    )


def build_ordered_list(
    records: Sequence[Any],
    head_id: Optional[str],
    slack: int = 5,
) -> ChainTraversal:
    """
    Walk the chain from ``head_id`` following ``next_course_id``.

    Traversal stops at a null pointer, at a pointer to an unknown id, or at
    the first id seen twice. Whatever was collected up to that point is
    returned with the matching flag set.

    Args:
        records: All course rows, unordered
        head_id: ID of the first course
        slack: Extra steps tolerated past ``len(records)`` before aborting

    Returns:
        ChainTraversal in chain order
    """
    by_id: Dict[str, Any] = {record.id: record for record in records}
    traversal = ChainTraversal(total=len(records))
    visited = set()
    current_id = head_id

    while current_id:
        if current_id in visited:
            logger.error("Cycle detected in course chain at %s; chain repair needed", current_id)
            traversal.cycle_detected = True
            break

        if len(traversal.entries) >= len(records) + slack:
            logger.error("Course chain traversal exceeded %d steps; aborting", len(records) + slack)
            traversal.runaway = True
            break

        record = by_id.get(current_id)
        if record is None:
            logger.error("Course chain points at missing course %s", current_id)
            traversal.dangling_id = current_id
            break

        visited.add(current_id)
        traversal.entries.append(OrderedCourse(record, len(traversal.entries) + 1))
        current_id = record.next_course_id

    if traversal.missing_count:
        logger.warning(
            "Course chain incomplete: %d of %d courses unreachable from head",
            traversal.missing_count,
            traversal.total,
        )

    return traversal


def resolve_order(
    records: Sequence[Any],
    metadata_exists: bool,
    head_id: Optional[str],
    slack: int = 5,
) -> ChainTraversal:
    """
    Pick chain traversal or legacy fallback for the given snapshot.

    The legacy index is used when there is no metadata row, or when the
    head is null or unknown while courses exist.
    """
    if not records:
        return ChainTraversal()

    known_ids = {record.id for record in records}
    if not metadata_exists or head_id is None or head_id not in known_ids:
        logger.warning(
            "Course chain not initialized (metadata=%s, head=%s); falling back to order_index",
            metadata_exists,
            head_id,
        )
        return order_by_legacy_index(records)

    return build_ordered_list(records, head_id, slack=slack)


def build_predecessor_index(records: Iterable[Any]) -> Dict[str, List[str]]:
    """
    Map each course id to the ids of the courses pointing at it.

    A healthy chain has at most one predecessor per id.
    """
    predecessors: Dict[str, List[str]] = {}
    for record in records:
        if record.next_course_id is not None:
            predecessors.setdefault(record.next_course_id, []).append(record.id)
    for ids in predecessors.values():
        ids.sort()
    return predecessors


def plan_move(
    course_id: str,
    course_next: Optional[str],
    target_id: Optional[str],
    target_next: Optional[str],
    predecessor_id: Optional[str],
    head_id: Optional[str],
) -> MovePlan:
    """
    Compute the pointer writes that place ``course_id`` right after ``target_id``.

    ``target_id=None`` means "move to head". Moving a course after itself,
    after its current predecessor, or to head when it already is head leaves
    the order unchanged and yields a no-op plan.

    Args:
        course_id: Course being moved
        course_next: Its current successor
        target_id: Anchor course, or None for the head position
        target_next: Anchor's current successor (ignored when target_id is None)
        predecessor_id: Course currently pointing at ``course_id``, if any
        head_id: Current chain head

    Returns:
        MovePlan with updates in application order
    """
    plan = MovePlan(old_head=head_id, new_head=head_id)

    # A self-loop is not a real predecessor or successor
    if predecessor_id == course_id:
        predecessor_id = None
    if course_next == course_id:
        course_next = None

    if course_id == target_id:
        plan.is_noop = True
        return plan
    if target_id is None and head_id == course_id:
        plan.is_noop = True
        return plan
    if target_id is not None and target_next == course_id:
        plan.is_noop = True
        return plan

    # Unlink first so that any prefix of the writes leaves the moved course
    # orphaned at worst, never on a cycle
    if predecessor_id is not None:
        plan.updates.append((predecessor_id, course_next))
    elif head_id == course_id:
        plan.new_head = course_next

    if target_id is not None:
        plan.updates.append((course_id, target_next))
        plan.updates.append((target_id, course_id))
    else:
        plan.updates.append((course_id, head_id))
        plan.new_head = course_id

    return plan


def diagnose(
    records: Sequence[Any],
    metadata_exists: bool,
    head_id: Optional[str],
    slack: int = 5,
) -> ChainDiagnosis:
    """Inspect a snapshot and report every structural problem found."""
    known_ids = {record.id for record in records}
    head_valid = head_id is not None and head_id in known_ids

    traversal = build_ordered_list(records, head_id, slack=slack) if head_valid else ChainTraversal(total=len(records))
    reached = {entry.course.id for entry in traversal.entries}
    predecessors = build_predecessor_index(records)

    return ChainDiagnosis(
        total=len(records),
        reachable=len(reached),
        metadata_exists=metadata_exists,
        head_id=head_id,
        head_valid=head_valid,
        cycle_detected=traversal.cycle_detected or traversal.runaway,
        dangling_id=traversal.dangling_id,
        unreachable_ids=sorted(known_ids - reached),
        shared_successor_ids=sorted(target for target, ids in predecessors.items() if len(ids) > 1),
        tail_count=sum(1 for record in records if record.next_course_id is None),
    )


def collect_fragments(records: Sequence[Any], head_id: Optional[str]) -> List[Any]:
    """
    Flatten whatever chain fragments exist into one order, for repair.

    The part reachable from ``head_id`` comes first. Unreachable fragments
    follow, each walked from its own start (a course nothing else points
    at), starts taken in legacy order. Remaining courses, which can only sit
    on cycles, are appended by walking from each in legacy order.

    Returns:
        Every record exactly once
    """
    by_id: Dict[str, Any] = {record.id: record for record in records}
    placed = set()
    ordered: List[Any] = []

    def walk(start_id: Optional[str]) -> None:
        current_id = start_id
        while current_id and current_id in by_id and current_id not in placed:
            placed.add(current_id)
            ordered.append(by_id[current_id])
            current_id = by_id[current_id].next_course_id

    if head_id in by_id:
        walk(head_id)

    remaining = [record for record in sorted(records, key=legacy_sort_key) if record.id not in placed]
    remaining_ids = {record.id for record in remaining}
    pointed_at = {
        record.next_course_id
        for record in remaining
        if record.next_course_id in remaining_ids and record.next_course_id != record.id
    }

    for record in remaining:
        if record.id not in pointed_at:
            walk(record.id)
    for record in remaining:
        walk(record.id)

    return ordered
