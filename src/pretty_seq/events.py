from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Union

from .layout import END, Grid, ReservedWidth, participant_rendered_width, participant_width
from .spans import group_bounds
from .styles import (
    ACTIVATION_NESTING_STEP,
    ACTIVATION_WIDTH,
    ARROW_DISTANCE_FROM_BOTTOM,
    DASH,
    GLYPH_LABEL_OFFSET,
    GLYPH_WIDTH,
    GROUP_PAD_X,
    LIFELINE_WIDTH,
    LIGHT_PURPLE,
    MEDIUM_BLUE,
    MEDIUM_PURPLE,
    MESSAGE_HEIGHT,
    MESSAGE_LABEL_GAP,
    MESSAGE_LABEL_MARGIN,
    MESSAGE_UNLABELED_HEIGHT,
    NOTE_MARGIN,
    PARTICIPANT_RADIUS,
    SELF_LABEL_GAP,
    SELF_LOOP_RISE,
    SELF_LOOP_WIDTH,
    SELF_MESSAGE_HEIGHT,
    SEPARATOR_PAD,
    lines_width,
    string_width,
)
from .types import (
    AltGroup,
    DiagramConfig,
    Group,
    LeftOf,
    Message,
    NoteOrientation,
    Participant,
    Point,
    RectParams,
    RightOf,
)

if TYPE_CHECKING:
    from .diagram import SequenceDiagram
    from .renderer import Renderer

# ============================================================================
# Timeline events
#
# The timeline is a list of rows, each row a list of events sharing one
# vertical slot. Every event variant answers four questions:
#
#   height(diagram)          minimum height of its row; depends only on the
#                            event's content and the diagram config
#   reserved_width(diagram)  optional horizontal constraint for the grid
#   col_range(diagram)       participant columns the event touches, used to
#                            size enclosing groups
#   draw(...)                emit renderer calls from resolved coordinates
#
# TimelineEvent is the closed union of all variants.
# ============================================================================


def participant_height(participant: Participant, config: DiagramConfig) -> int:
    if participant.kind == "participant":
        return config.participant_font_size * 20 // 7
    # Stickman and datastore glyphs stack the label under an icon
    return config.participant_font_size * 32 // 7


def group_banner_height(config: DiagramConfig) -> int:
    return config.group_font_size * 5 // 4


# ============================================================================
# Participant created
# ============================================================================


@dataclass(frozen=True, slots=True)
class ParticipantCreated:
    participant: int

    def height(self, diagram: SequenceDiagram) -> int:
        return participant_height(diagram.participant(self.participant), diagram.config)

    def reserved_width(self, diagram: SequenceDiagram) -> ReservedWidth | None:
        p = diagram.participant(self.participant)
        col = p.idx + 1
        return ReservedWidth(col, col, participant_width(p, diagram.config))

    def col_range(self, diagram: SequenceDiagram) -> tuple[int, int] | None:
        return (self.participant, self.participant)

    def draw(self, diagram: SequenceDiagram, renderer: Renderer, grid: Grid, row: int) -> None:
        p = diagram.participant(self.participant)
        config = diagram.config
        center_x = grid.col_center(p.idx)
        footer_top = grid.row_top(grid.num_rows - 1)

        # Lifeline
        renderer.render_line(
            Point(center_x, grid.row_bottom(row)),
            Point(center_x, footer_top),
            LIFELINE_WIDTH,
            0,
            MEDIUM_BLUE,
        )

        # Activation bars, fanned out by nesting depth
        for activation in p.activations:
            x = center_x - ACTIVATION_WIDTH // 2 + activation.nesting * ACTIVATION_NESTING_STEP
            if activation.start is None:
                start_y = grid.row_top(1)
            else:
                start_y = grid.row_bottom(activation.start) - ARROW_DISTANCE_FROM_BOTTOM
            if activation.end is None:
                end_y = grid.row_bottom(grid.num_rows - 2)
            else:
                end_y = grid.row_bottom(activation.end) - ARROW_DISTANCE_FROM_BOTTOM
            renderer.render_rect(x, start_y, ACTIVATION_WIDTH, end_y - start_y, RectParams())

        height = participant_height(p, config)
        draw_participant(p, config, renderer, center_x, grid.row_bottom(row) - height)
        draw_participant(p, config, renderer, center_x, footer_top)


def draw_participant(
    participant: Participant,
    config: DiagramConfig,
    renderer: Renderer,
    x: int,
    y: int,
) -> None:
    """Draw a participant glyph whose footprint starts at y, centered on x."""
    font_size = config.participant_font_size
    height = participant_height(participant, config)

    if participant.kind == "participant":
        width = participant_rendered_width(participant, config)
        renderer.render_rect(x - width // 2, y, width, height, RectParams(r=PARTICIPANT_RADIUS))
        renderer.render_text(participant.label, x, y + height // 3, font_size, "middle")
        return

    glyph_bottom = y + height - GLYPH_LABEL_OFFSET
    glyph_height = height - GLYPH_WIDTH
    if participant.kind == "actor":
        renderer.render_stickman(x, glyph_bottom, GLYPH_WIDTH, glyph_height)
    else:
        renderer.render_db_icon(x, glyph_bottom, GLYPH_WIDTH, glyph_height)
    renderer.render_text(participant.label, x, glyph_bottom, font_size, "middle")


# ============================================================================
# Message sent
# ============================================================================


@dataclass(frozen=True, slots=True)
class MessageSent:
    message: Message

    def height(self, diagram: SequenceDiagram) -> int:
        text_height = diagram.config.message_font_size * (self.message.label.count("\n") + 1)
        if self.message.is_self:
            # The label hangs from SELF_LOOP_RISE above the row center
            return max(SELF_MESSAGE_HEIGHT, 2 * (text_height - SELF_LOOP_RISE))
        if not self.message.label:
            return MESSAGE_UNLABELED_HEIGHT
        return max(MESSAGE_HEIGHT, text_height + MESSAGE_LABEL_GAP + ARROW_DISTANCE_FROM_BOTTOM)

    def reserved_width(self, diagram: SequenceDiagram) -> ReservedWidth | None:
        from_idx = self.message.from_
        to_idx = self.message.to
        label_width = lines_width(self.message.label, diagram.config.message_font_size)
        if from_idx == to_idx:
            # Self-loops borrow the gap to the right-hand neighbour
            width = label_width + SELF_LOOP_WIDTH + SELF_LABEL_GAP
            return ReservedWidth(from_idx + 1, from_idx + 2, width)
        return ReservedWidth.between(from_idx + 1, to_idx + 1, label_width + MESSAGE_LABEL_MARGIN)

    def col_range(self, diagram: SequenceDiagram) -> tuple[int, int] | None:
        return self.message.col_range

    def draw(self, diagram: SequenceDiagram, renderer: Renderer, grid: Grid, row: int) -> None:
        if self.message.is_self:
            self._draw_self(diagram, renderer, grid, row)
        else:
            self._draw_regular(diagram, renderer, grid, row)

    def _draw_regular(self, diagram: SequenceDiagram, renderer: Renderer, grid: Grid, row: int) -> None:
        msg = self.message
        font_size = diagram.config.message_font_size
        y = grid.row_bottom(row) - ARROW_DISTANCE_FROM_BOTTOM

        src = diagram.participant(msg.from_)
        dest = diagram.participant(msg.to)
        # Attach to the facing side of any activation bars
        if msg.from_ < msg.to:
            src_offset = src.lifeline_offset(row)[1]
            dest_offset = dest.lifeline_offset(row)[0]
        else:
            src_offset = src.lifeline_offset(row)[0]
            dest_offset = dest.lifeline_offset(row)[1]
        src_x = grid.col_center(msg.from_) + src_offset
        dest_x = grid.col_center(msg.to) + dest_offset

        renderer.render_arrow(Point(src_x, y), Point(dest_x, y), _dash(msg))

        text_x = (src_x + dest_x) // 2
        line_count = msg.label.count("\n") + 1
        renderer.render_text(
            msg.label, text_x, y - font_size * line_count - MESSAGE_LABEL_GAP, font_size, "middle"
        )

    def _draw_self(self, diagram: SequenceDiagram, renderer: Renderer, grid: Grid, row: int) -> None:
        msg = self.message
        participant = diagram.participant(msg.from_)
        y_start = grid.row_center(row) - SELF_LOOP_RISE
        y_end = grid.row_bottom(row) - ARROW_DISTANCE_FROM_BOTTOM
        x = grid.col_center(msg.from_) + participant.lifeline_offset(row)[1]
        x_loop = x + SELF_LOOP_WIDTH
        dash = _dash(msg)

        renderer.render_line(Point(x, y_start), Point(x_loop, y_start), 1, dash, "black")
        renderer.render_line(Point(x_loop, y_start), Point(x_loop, y_end), 1, dash, "black")
        renderer.render_arrow(Point(x_loop, y_end), Point(x, y_end), dash)
        renderer.render_text(msg.label, x_loop + SELF_LABEL_GAP, y_start, diagram.config.message_font_size, "start")


def _dash(msg: Message) -> int:
    return DASH if msg.style == "dashed" else 0


# ============================================================================
# Groups
# ============================================================================


@dataclass(frozen=True, slots=True)
class GroupStarted:
    group: int

    def height(self, diagram: SequenceDiagram) -> int:
        return group_banner_height(diagram.config)

    def reserved_width(self, diagram: SequenceDiagram) -> ReservedWidth | None:
        # The group's extent is implied by the events inside it
        return None

    def col_range(self, diagram: SequenceDiagram) -> tuple[int, int] | None:
        return None

    def draw(self, diagram: SequenceDiagram, renderer: Renderer, grid: Grid, row: int) -> None:
        draw_group(diagram, diagram.group(self.group), renderer, grid)


@dataclass(frozen=True, slots=True)
class GroupEnded:
    group: int

    def height(self, diagram: SequenceDiagram) -> int:
        # The row margin already leaves room for the group's bottom edge
        return 0

    def reserved_width(self, diagram: SequenceDiagram) -> ReservedWidth | None:
        return None

    def col_range(self, diagram: SequenceDiagram) -> tuple[int, int] | None:
        return None

    def draw(self, diagram: SequenceDiagram, renderer: Renderer, grid: Grid, row: int) -> None:
        pass


@dataclass(frozen=True, slots=True)
class AltCase:
    group: int

    def height(self, diagram: SequenceDiagram) -> int:
        return group_banner_height(diagram.config)

    def reserved_width(self, diagram: SequenceDiagram) -> ReservedWidth | None:
        return None

    def col_range(self, diagram: SequenceDiagram) -> tuple[int, int] | None:
        return None

    def draw(self, diagram: SequenceDiagram, renderer: Renderer, grid: Grid, row: int) -> None:
        # Dividers are drawn together with the enclosing group's box
        pass


def draw_group(diagram: SequenceDiagram, group: Group, renderer: Renderer, grid: Grid) -> None:
    font_size = group.font_size
    left, right = group_bounds(diagram, group, grid)
    x = left - GROUP_PAD_X
    width = right - left + GROUP_PAD_X * 2
    y = grid.row_top(group.start)
    end_row = group.end if group.end is not None else grid.num_rows - 2
    height = grid.row_bottom(end_row) - y

    renderer.render_rect(
        x, y, width, height,
        RectParams(fill=LIGHT_PURPLE, fill_opacity=0.2, stroke=MEDIUM_PURPLE, stroke_width=2, r=5),
    )

    # Label tab in the top left corner
    label_width = string_width(group.label, font_size) + 20
    renderer.render_rect(
        x, y, label_width, font_size * 13 // 10,
        RectParams(fill=MEDIUM_PURPLE, stroke=MEDIUM_PURPLE, stroke_width=2, r=5),
    )
    renderer.render_text(group.label, left, y, font_size, "start")

    if group.header:
        renderer.render_text(f"[{group.header}]", x + label_width + 10, y, font_size, "start")

    if isinstance(group, AltGroup):
        for case in group.cases:
            case_y = grid.row_top(case.row)
            renderer.render_line(Point(x, case_y), Point(x + width, case_y), 2, DASH, MEDIUM_PURPLE)
            renderer.render_text(f"[{case.label}]", left, case_y, font_size, "start")


# ============================================================================
# Notes
# ============================================================================


@dataclass(frozen=True, slots=True)
class Note:
    label: str
    orientation: NoteOrientation

    def width(self, diagram: SequenceDiagram) -> int:
        return lines_width(self.label, diagram.config.note_font_size) + NOTE_MARGIN

    def height(self, diagram: SequenceDiagram) -> int:
        line_count = self.label.count("\n") + 1
        return diagram.config.note_font_size * line_count + NOTE_MARGIN

    def reserved_width(self, diagram: SequenceDiagram) -> ReservedWidth | None:
        # Deliberately wide: a note may claim the whole side of the diagram
        orientation = self.orientation
        width = self.width(diagram) + NOTE_MARGIN
        if isinstance(orientation, LeftOf):
            return ReservedWidth(0, orientation.participant + 1, width)
        if isinstance(orientation, RightOf):
            return ReservedWidth(orientation.participant + 1, END, width)
        return ReservedWidth(0, END, self.width(diagram))

    def col_range(self, diagram: SequenceDiagram) -> tuple[int, int] | None:
        return None

    def draw(self, diagram: SequenceDiagram, renderer: Renderer, grid: Grid, row: int) -> None:
        width = self.width(diagram)
        height = self.height(diagram)
        orientation = self.orientation

        if isinstance(orientation, LeftOf):
            x = grid.col_center(orientation.participant) - NOTE_MARGIN - width
        elif isinstance(orientation, RightOf):
            x = grid.col_center(orientation.participant) + NOTE_MARGIN
        else:
            first = min(orientation.participants)
            last = max(orientation.participants)
            mid_x = (grid.col_center(first) + grid.col_center(last)) // 2
            # Never past the outer margins
            x = max(grid.cols[0], min(mid_x - width // 2, grid.width - width))

        y = grid.row_top(row) + max(0, grid.row_height(row) - height) // 2
        renderer.render_note(x, y, width, height)
        renderer.render_text(
            self.label,
            x + NOTE_MARGIN // 2,
            y + NOTE_MARGIN // 2,
            diagram.config.note_font_size,
            "start",
        )


# ============================================================================
# Separator
# ============================================================================


@dataclass(frozen=True, slots=True)
class Separator:
    label: str

    def width(self, diagram: SequenceDiagram) -> int:
        return string_width(self.label, diagram.config.separator_font_size) * 12 // 10

    def height(self, diagram: SequenceDiagram) -> int:
        return diagram.config.separator_font_size * 12 // 10

    def reserved_width(self, diagram: SequenceDiagram) -> ReservedWidth | None:
        return ReservedWidth(0, END, self.width(diagram) + SEPARATOR_PAD)

    def col_range(self, diagram: SequenceDiagram) -> tuple[int, int] | None:
        return None

    def draw(self, diagram: SequenceDiagram, renderer: Renderer, grid: Grid, row: int) -> None:
        height = grid.row_height(row)
        top = grid.row_top(row)
        bottom = grid.row_bottom(row)
        width = self.width(diagram)

        for y in (bottom - height // 3, bottom - height * 2 // 3):
            renderer.render_line(Point(0, y), Point(grid.width, y), 1, 0, MEDIUM_PURPLE)

        renderer.render_rect(
            (grid.width - width) // 2, top, width, self.height(diagram),
            RectParams(fill=LIGHT_PURPLE, stroke=MEDIUM_PURPLE),
        )
        renderer.render_text(
            self.label, grid.width // 2, top, diagram.config.separator_font_size, "middle"
        )


TimelineEvent = Union[
    ParticipantCreated,
    MessageSent,
    GroupStarted,
    GroupEnded,
    AltCase,
    Note,
    Separator,
]
