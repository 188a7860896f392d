from __future__ import annotations

from typing import TYPE_CHECKING

from .layout import Grid
from .types import Group

if TYPE_CHECKING:
    from .diagram import SequenceDiagram


def group_col_range(diagram: SequenceDiagram, group: Group) -> tuple[int, int] | None:
    """Leftmost and rightmost participant column touched inside a group.

    Scans every event in the rows the group covers. Messages contribute both
    of their endpoints, so columns between them are covered even if nothing
    in the group mentions them. Falls back to every participant when no
    event inside has a column affinity; None when there are no participants.
    """
    end = group.end if group.end is not None else len(diagram.timeline)
    cols: set[int] = set()
    for events in diagram.timeline[group.start:end]:
        for event in events:
            col_range = event.col_range(diagram)
            if col_range is not None:
                cols.update(col_range)

    if not cols:
        if not diagram.participants:
            return None
        return (0, len(diagram.participants) - 1)
    return (min(cols), max(cols))


def group_bounds(diagram: SequenceDiagram, group: Group, grid: Grid) -> tuple[int, int]:
    """Horizontal extent of a group as lifeline x-coordinates."""
    col_range = group_col_range(diagram, group)
    if col_range is None:
        return (grid.cols[0], grid.width)
    return (grid.col_center(col_range[0]), grid.col_center(col_range[1]))
