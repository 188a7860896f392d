from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .errors import LayoutError
from .styles import PARTICIPANT_BOX_PAD, PARTICIPANT_SPACE, ROW_MARGIN, string_width
from .types import DiagramConfig, Participant

if TYPE_CHECKING:
    from .diagram import SequenceDiagram

logger = logging.getLogger(__name__)

# ============================================================================
# Sequence diagram grid layout
#
# The diagram is laid out on a grid: one row per timeline slot and one column
# per participant, framed by an outer margin column on each side.
#
# Layout strategy:
#   1. Size every row independently from the tallest event in it
#   2. Space columns by the participants' own box widths
#   3. Widen columns until every ReservedWidth constraint holds, narrowest
#      constraints first
# ============================================================================

# Right column placeholder meaning "the diagram's rightmost boundary"
END = sys.maxsize


@dataclass(frozen=True, slots=True)
class ReservedWidth:
    """Minimum distance between two column boundaries requested by an event."""
    left_col: int
    right_col: int
    width: int

    @classmethod
    def between(cls, col1: int, col2: int, width: int) -> ReservedWidth:
        if col1 <= col2:
            return cls(left_col=col1, right_col=col2, width=width)
        return cls(left_col=col2, right_col=col1, width=width)

    @property
    def col_distance(self) -> int:
        return self.right_col - self.left_col


@dataclass(slots=True)
class Grid:
    # Column boundaries: outer left margin, one per participant center, outer right margin
    cols: list[int] = field(default_factory=lambda: [0])
    # Alternating row top / row bottom coordinates, plus the trailing margin
    row_bounds: list[int] = field(default_factory=lambda: [ROW_MARGIN])

    @property
    def num_rows(self) -> int:
        return len(self.row_bounds) // 2

    @property
    def width(self) -> int:
        return self.cols[-1]

    @property
    def height(self) -> int:
        return self.row_bounds[-1]

    def col_center(self, col: int) -> int:
        return self.cols[col + 1]

    def row_top(self, row: int) -> int:
        return self.row_bounds[row * 2]

    def row_bottom(self, row: int) -> int:
        return self.row_bounds[row * 2 + 1]

    def row_height(self, row: int) -> int:
        return self.row_bottom(row) - self.row_top(row)

    def row_center(self, row: int) -> int:
        return self.row_top(row) + self.row_height(row) // 2

    def add_row(self, height: int) -> None:
        bottom = self.row_bounds[-1] + height
        self.row_bounds.append(bottom)
        self.row_bounds.append(bottom + ROW_MARGIN)


def participant_rendered_width(participant: Participant, config: DiagramConfig) -> int:
    """Width of the participant's box (or glyph label) as drawn."""
    return string_width(participant.label, config.participant_font_size) + PARTICIPANT_BOX_PAD


def participant_width(participant: Participant, config: DiagramConfig) -> int:
    """Horizontal footprint of a participant, including the space around it."""
    return participant_rendered_width(participant, config) + PARTICIPANT_SPACE


def calculate_grid(diagram: SequenceDiagram) -> Grid:
    """Resolve row and column bounds for a fully constructed diagram.

    Finishes the diagram first, so an unclosed group fails here.
    """
    diagram.finish()

    grid = Grid()
    for events in diagram.timeline:
        grid.add_row(max((ev.height(diagram) for ev in events), default=0))
    # Footer row mirrors the header so the bottom participant glyphs fit
    grid.add_row(grid.row_height(0))

    grid.cols = calculate_cols(diagram)
    logger.debug(
        "Calculated grid: %d columns, %d rows, %dx%d",
        len(grid.cols), grid.num_rows, grid.width, grid.height,
    )
    return grid


def calculate_cols(diagram: SequenceDiagram) -> list[int]:
    cols = [0]
    widths = [participant_width(p, diagram.config) for p in diagram.participants]

    x = 0
    for idx, width in enumerate(widths):
        if idx == 0:
            x += width // 2
        else:
            x += (widths[idx - 1] + width) // 2
        cols.append(x)
    if widths:
        cols.append(x + widths[-1] // 2)

    constraints: list[ReservedWidth] = []
    for row in diagram.timeline:
        for event in row:
            reserved = event.reserved_width(diagram)
            if reserved is not None:
                constraints.append(_resolve_columns(reserved, len(cols) - 1))

    # Narrow constraints first: wide ones then see the already widened layout
    for reserved in sorted(constraints, key=lambda r: (r.col_distance, r.left_col)):
        if reserved.col_distance == 0:
            # A single column is already as wide as its participant box
            continue
        missing = reserved.width - (cols[reserved.right_col] - cols[reserved.left_col])
        if missing > 0:
            logger.debug(
                "Widening columns %d..%d by %d for %s",
                reserved.right_col, len(cols) - 1, missing, reserved,
            )
            for idx in range(reserved.right_col, len(cols)):
                cols[idx] += missing

    return cols


def _resolve_columns(reserved: ReservedWidth, last_col: int) -> ReservedWidth:
    right_col = last_col if reserved.right_col == END else reserved.right_col
    if reserved.left_col < 0 or right_col > last_col or reserved.left_col > right_col:
        raise LayoutError(
            f"Reserved width references columns {reserved.left_col}..{reserved.right_col} "
            f"outside the grid (0..{last_col})"
        )
    return ReservedWidth(left_col=reserved.left_col, right_col=right_col, width=reserved.width)
