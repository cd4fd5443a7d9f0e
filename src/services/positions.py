"""Position planning for ordered siblings.

A *scope* is a set of siblings sharing one ordering: the columns of a board,
or the active (non-archived) cards of a column. Within a scope, positions are
always the dense sequence ``0..n-1``.

Everything in this module is pure: it works out which positions must move and
where the target lands, and leaves storage to the caller (see
``src.services.transactions.apply_shifts``).
"""

from collections import Counter
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field

from src.services.exceptions import InvalidReorderError


@dataclass(frozen=True)
class Shift:
    """Move every sibling of ``scope_id`` whose position is in ``[start, end]`` by ``delta``.

    ``end`` of ``None`` means the range is open-ended.
    """

    scope_id: str
    delta: int
    start: int
    end: int | None = None

    def covers(self, position: int) -> bool:
        """Check whether a sibling at ``position`` falls in this shift."""
        if position < self.start:
            return False
        return self.end is None or position <= self.end


@dataclass(frozen=True)
class Placement:
    """Where an entity lands, plus the sibling shifts that make room for it."""

    scope_id: str
    position: int
    shifts: tuple[Shift, ...] = field(default_factory=tuple)


def plan_append(scope_id: str, sibling_count: int) -> Placement:
    """Place a new entity at the end of its scope."""
    return Placement(scope_id=scope_id, position=sibling_count)


def plan_removal(scope_id: str, position: int) -> tuple[Shift, ...]:
    """Close the gap left by removing (deleting or archiving) the entity at ``position``."""
    return (Shift(scope_id=scope_id, delta=-1, start=position + 1),)


def plan_restore(scope_id: str, active_count: int) -> Placement:
    """Re-append a restored card after the current active cards.

    The position the card held before it was archived is deliberately not an
    input.
    """
    return plan_append(scope_id, active_count)


def clamp_position(position: int, upper: int) -> int:
    """Clamp ``position`` into ``[0, upper]``."""
    return max(0, min(position, max(upper, 0)))


def plan_move(
    source_scope: str,
    source_position: int,
    target_scope: str,
    target_position: int,
    target_count: int,
) -> Placement:
    """Plan a move of one entity, within a scope or across two scopes.

    ``target_count`` is the number of siblings currently in the target scope;
    for a same-scope move it includes the entity being moved. The requested
    position is clamped so the result stays dense.
    """
    if source_scope == target_scope:
        position = clamp_position(target_position, target_count - 1)
        if position > source_position:
            # Moving down: everyone between the old slot and the new one steps up.
            shifts = (
                Shift(scope_id=source_scope, delta=-1, start=source_position + 1, end=position),
            )
        elif position < source_position:
            shifts = (
                Shift(scope_id=source_scope, delta=1, start=position, end=source_position - 1),
            )
        else:
            shifts = ()
        return Placement(scope_id=target_scope, position=position, shifts=shifts)

    position = clamp_position(target_position, target_count)
    shifts = (
        *plan_removal(source_scope, source_position),
        Shift(scope_id=target_scope, delta=1, start=position),
    )
    return Placement(scope_id=target_scope, position=position, shifts=shifts)


def plan_reorder(requested_ids: Sequence[str], current_ids: Iterable[str]) -> dict[str, int]:
    """Map each requested id to its index, after checking the list is a permutation.

    Raises:
        InvalidReorderError: duplicates, ids missing from the request, or ids
            that are not current siblings.
    """
    duplicates = sorted(item for item, count in Counter(requested_ids).items() if count > 1)
    if duplicates:
        raise InvalidReorderError(f"Duplicate ids in reorder request: {', '.join(duplicates)}")

    requested = set(requested_ids)
    current = set(current_ids)
    if requested != current:
        missing = len(current - requested)
        unknown = len(requested - current)
        raise InvalidReorderError(
            f"Reorder request must list every sibling exactly once "
            f"({missing} missing, {unknown} unknown)"
        )

    return {entity_id: index for index, entity_id in enumerate(requested_ids)}


def apply_plan(
    scope_id: str, positions: Mapping[str, int], shifts: Iterable[Shift]
) -> dict[str, int]:
    """Apply the shifts that target ``scope_id`` to an in-memory ``{id: position}`` map.

    Every shift is evaluated against the original positions, matching how a
    batch of ``UPDATE`` statements behaves when their ranges do not overlap.
    """
    result = dict(positions)
    for shift in shifts:
        if shift.scope_id != scope_id:
            continue
        for entity_id, position in positions.items():
            if shift.covers(position):
                result[entity_id] += shift.delta
    return result


def is_dense(positions: Iterable[int]) -> bool:
    """Check that positions are exactly ``0..n-1`` with no duplicates."""
    ordered = sorted(positions)
    return ordered == list(range(len(ordered)))
