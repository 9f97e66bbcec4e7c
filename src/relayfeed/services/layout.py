"""Masonry layout balancer.

Distributes variable-height notes across 1 to 4 columns in two phases:

1. **Estimate** ([distribute()][relayfeed.services.layout.distribute]):
   the first ``columns`` notes seed one column each at an assumed height;
   every later note goes to the currently shortest column, which grows by
   the note's estimated height plus the gap.
2. **Correct** ([redistribute()][relayfeed.services.layout.redistribute]):
   once rendering settles, the real column heights are measured. If the
   spread between tallest and shortest exceeds the threshold
   ([is_unbalanced()][relayfeed.services.layout.is_unbalanced]), the same
   greedy rule is rerun with the measured heights as starting totals.

[MasonryLayout][relayfeed.services.layout.MasonryLayout] wraps both phases
in an explicit state machine with cancellable scheduled corrections.

Examples:
    ```python
    async def measure() -> list[float]:
        return renderer.column_heights()

    layout = MasonryLayout(measure, LayoutConfig(columns=3))
    layout.subscribe(renderer.render)
    layout.set_notes(notes)
    ...
    layout.close()
    ```
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from relayfeed.core.logger import Logger

from .configs import LayoutConfig


if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Iterable, Sequence

    from relayfeed.models.note import Note


MIN_COLUMNS = 1
MAX_COLUMNS = 4

_DEFAULT_CONFIG = LayoutConfig()


@dataclass(frozen=True, slots=True)
class ColumnAssignment:
    """Notes per column plus the running height used to place them.

    Attributes:
        columns: One ordered tuple of notes per column.
        heights: Running height of each column after placement (estimated
            in phase 1, seeded from measurements in phase 2).
        order: All notes in input order.
    """

    columns: tuple[tuple[Note, ...], ...]
    heights: tuple[float, ...]
    order: tuple[Note, ...] = field(default=())

    @property
    def column_count(self) -> int:
        return len(self.columns)

    def all_notes(self) -> list[Note]:
        """Every placed note, column by column."""
        return [note for column in self.columns for note in column]

    def column_of(self, note_id: str) -> int | None:
        for index, column in enumerate(self.columns):
            if any(note.id == note_id for note in column):
                return index
        return None


def clamp_columns(value: Any, default: int = _DEFAULT_CONFIG.columns) -> int:
    """Coerce *value* to a column count in ``[1, 4]``.

    Non-numeric input and zero fall back to *default*; anything else is
    truncated and clamped. Never raises.
    """
    try:
        count = int(float(value))
    except (TypeError, ValueError, OverflowError):
        count = 0
    if count == 0:
        count = default
    return max(MIN_COLUMNS, min(MAX_COLUMNS, count))


def estimate_height(note: Note, config: LayoutConfig = _DEFAULT_CONFIG) -> float:
    """Estimated rendered height: grows with body length, capped."""
    return min(config.max_height, config.base_height + len(note.content) * config.chars_factor)


def _shortest(heights: Sequence[float]) -> int:
    # min() returns the first minimum, so ties go to the lowest index
    return min(range(len(heights)), key=heights.__getitem__)


def distribute(
    notes: Iterable[Note], columns: Any, config: LayoutConfig = _DEFAULT_CONFIG
) -> ColumnAssignment:
    """Phase 1: place notes by estimated height.

    Every input note appears in exactly one column, and notes keep their
    relative input order within a column.
    """
    count = clamp_columns(columns, config.columns)
    order = tuple(notes)
    placed: list[list[Note]] = [[] for _ in range(count)]
    heights = [0.0] * count

    for index, note in enumerate(order):
        if index < count:
            placed[index].append(note)
            heights[index] = config.initial_height
            continue
        target = _shortest(heights)
        placed[target].append(note)
        heights[target] += estimate_height(note, config) + config.gap

    return ColumnAssignment(tuple(tuple(c) for c in placed), tuple(heights), order)


def is_unbalanced(
    heights: Sequence[float], threshold: float = _DEFAULT_CONFIG.imbalance_threshold
) -> bool:
    """Whether ``(max - min) / max`` exceeds *threshold* (``False`` if ``max <= 0``)."""
    if not heights:
        return False
    tallest = max(heights)
    if tallest <= 0:
        return False
    return (tallest - min(heights)) / tallest > threshold


def redistribute(
    assignment: ColumnAssignment,
    measured_heights: Sequence[float],
    config: LayoutConfig = _DEFAULT_CONFIG,
) -> ColumnAssignment:
    """Phase 2: re-place notes greedily from measured column heights.

    The measured heights are the starting running totals. Notes are placed
    in input order on the shortest column, which then grows by
    ``config.placement_height``.

    Raises:
        ValueError: If the number of heights differs from the column count.
    """
    if len(measured_heights) != assignment.column_count:
        raise ValueError(
            f"expected {assignment.column_count} column heights, got {len(measured_heights)}"
        )

    order = assignment.order or tuple(assignment.all_notes())
    placed: list[list[Note]] = [[] for _ in range(assignment.column_count)]
    heights = [max(float(h), 0.0) for h in measured_heights]
    for note in order:
        target = _shortest(heights)
        placed[target].append(note)
        heights[target] += config.placement_height

    return ColumnAssignment(tuple(tuple(c) for c in placed), tuple(heights), order)


# ---------------------------------------------------------------------------
# Stateful layout
# ---------------------------------------------------------------------------


class LayoutPhase(StrEnum):
    """Lifecycle of [MasonryLayout][relayfeed.services.layout.MasonryLayout].

    Attributes:
        IDLE: Nothing published yet.
        ESTIMATED: Phase-1 assignment published; a correction may be pending.
        CORRECTED: Phase-2 assignment published from measured heights.
    """

    IDLE = "idle"
    ESTIMATED = "estimated"
    CORRECTED = "corrected"


class MasonryLayout:
    """Incremental two-phase masonry layout driven by render measurements.

    Content and column changes publish a fresh estimate immediately and
    schedule a correction ``settle_delay`` seconds later. A resize waits
    ``resize_delay`` seconds before re-estimating. Any change cancels the
    pending correction first, so at most one is ever scheduled.

    ``set_notes``, ``set_columns`` and ``on_resize`` must be called from
    a running event loop.

    Args:
        measure: Async callable returning the rendered column heights.
        config: Layout parameters.
    """

    def __init__(
        self,
        measure: Callable[[], Awaitable[Sequence[float]]],
        config: LayoutConfig | None = None,
    ) -> None:
        self._measure = measure
        self._config = config or LayoutConfig()
        self._columns = clamp_columns(self._config.columns)
        self._notes: tuple[Note, ...] = ()
        self._assignment: ColumnAssignment | None = None
        self._phase = LayoutPhase.IDLE
        self._pending: asyncio.Task[None] | None = None
        self._listeners: list[Callable[[ColumnAssignment], None]] = []
        self._logger = Logger("layout")

    @property
    def phase(self) -> LayoutPhase:
        return self._phase

    @property
    def columns(self) -> int:
        return self._columns

    @property
    def assignment(self) -> ColumnAssignment | None:
        return self._assignment

    @property
    def has_pending(self) -> bool:
        return self._pending is not None and not self._pending.done()

    def subscribe(self, listener: Callable[[ColumnAssignment], None]) -> Callable[[], None]:
        """Call *listener* with every published assignment; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def set_notes(self, notes: Iterable[Note]) -> None:
        """Replace the content and re-layout immediately."""
        self._notes = tuple(notes)
        self._relayout()

    def set_columns(self, columns: Any) -> None:
        """Change the column count (clamped to ``[1, 4]``) and re-layout immediately."""
        self._columns = clamp_columns(columns, self._config.columns)
        self._relayout()

    def on_resize(self) -> None:
        """Debounced re-layout after a viewport resize."""
        self._cancel_pending()
        self._pending = asyncio.create_task(self._resize_after(self._config.resize_delay))

    async def wait_settled(self) -> None:
        """Wait until no correction or resize is pending."""
        while self._pending is not None and not self._pending.done():
            await asyncio.wait({self._pending})

    def close(self) -> None:
        """Cancel any pending work. Listeners are kept."""
        self._cancel_pending()

    def _cancel_pending(self) -> None:
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = None

    def _relayout(self) -> None:
        self._cancel_pending()
        self._publish_estimate()
        if self._notes:
            self._pending = asyncio.create_task(self._correct_after(self._config.settle_delay))

    def _publish_estimate(self) -> None:
        self._phase = LayoutPhase.ESTIMATED
        self._publish(distribute(self._notes, self._columns, self._config))

    def _publish(self, assignment: ColumnAssignment) -> None:
        self._assignment = assignment
        for listener in list(self._listeners):
            listener(assignment)

    async def _resize_after(self, delay: float) -> None:
        await asyncio.sleep(delay)
        self._publish_estimate()
        if self._notes:
            await self._correct_after(self._config.settle_delay)

    async def _correct_after(self, delay: float) -> None:
        await asyncio.sleep(delay)
        assignment = self._assignment
        if assignment is None:
            return

        try:
            heights = list(await self._measure())
        # measure() belongs to the renderer; any failure keeps the estimate
        except Exception as e:
            self._logger.warning("measure_failed", error=str(e), error_type=type(e).__name__)
            return

        if len(heights) != assignment.column_count:
            self._logger.debug(
                "measure_mismatch", expected=assignment.column_count, received=len(heights)
            )
            return
        if not is_unbalanced(heights, self._config.imbalance_threshold):
            return

        self._logger.debug("columns_unbalanced", heights=heights)
        self._phase = LayoutPhase.CORRECTED
        self._publish(redistribute(assignment, heights, self._config))
