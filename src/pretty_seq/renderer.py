from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

from .layout import Grid, calculate_grid
from .styles import (
    DASH,
    DEBUG_LINE,
    GLYPH_STROKE_WIDTH,
    LIGHT_BLUE,
    MEDIUM_BLUE,
    NOTE_FILL,
    NOTE_STROKE,
)
from .types import Point, RectParams, TextAnchor

if TYPE_CHECKING:
    from .diagram import SequenceDiagram

# ============================================================================
# Sequence diagram rendering
#
# Timeline events draw themselves through the Renderer protocol using
# coordinates already resolved by the grid; a backend only has to turn
# those primitives into output. SvgRenderer is the bundled SVG backend.
#
# Render order follows the timeline: row 0 (participants and lifelines)
# first, then every later row top to bottom.
# ============================================================================

ARROW_HEAD_ID = "arrow"


class Renderer(Protocol):
    def render_rect(self, x: int, y: int, width: int, height: int, params: RectParams) -> None: ...

    def render_text(self, text: str, x: int, y: int, font_size: int, anchor: TextAnchor) -> None:
        """Draw text whose first line's top edge sits at y; "\\n" starts a new line."""
        ...

    def render_line(
        self,
        p1: Point,
        p2: Point,
        width: int,
        dash: int,
        stroke: str,
        marker_end: str | None = None,
    ) -> None: ...

    def render_arrow(self, p1: Point, p2: Point, dash: int) -> None: ...

    def render_circle(self, center: Point, r: int, color: str) -> None: ...

    def render_stickman(self, x: int, y: int, width: int, height: int) -> None:
        """Stick figure standing on (x, y), `height` tall."""
        ...

    def render_db_icon(self, x: int, y: int, width: int, height: int) -> None:
        """Cylinder resting on (x, y), `height` tall."""
        ...

    def render_note(self, x: int, y: int, width: int, height: int) -> None: ...


def render_diagram(
    diagram: SequenceDiagram,
    renderer: Renderer,
    grid: Grid | None = None,
    show_debug_lines: bool = False,
) -> Grid:
    """Draw every timeline event onto the renderer and return the grid used."""
    if grid is None:
        grid = calculate_grid(diagram)

    for row, events in enumerate(diagram.timeline):
        for event in events:
            event.draw(diagram, renderer, grid, row)

    if show_debug_lines:
        render_debug_lines(renderer, grid)
    return grid


def render_debug_lines(renderer: Renderer, grid: Grid) -> None:
    """Overlay every column boundary and row bound."""
    for col in grid.cols:
        renderer.render_line(Point(col, 0), Point(col, grid.height), 1, DASH, DEBUG_LINE)
    for bound in grid.row_bounds:
        renderer.render_line(Point(0, bound), Point(grid.width, bound), 1, DASH, DEBUG_LINE)


# ============================================================================
# SVG backend
# ============================================================================


class SvgRenderer:
    """Collects SVG elements for a canvas of the given size."""

    def __init__(self, width: int, height: int):
        self.width = width
        self.height = height
        self.parts: list[str] = []

    def as_string(self) -> str:
        return "\n".join([
            f'<svg xmlns="http://www.w3.org/2000/svg" viewBox="-5 -5 {self.width + 10} {self.height + 10}" '
            f'width="{self.width + 10}" height="{self.height + 10}">',
            "<defs>",
            _arrow_marker_def(),
            "</defs>",
            *self.parts,
            "</svg>",
        ])

    def render_rect(self, x: int, y: int, width: int, height: int, params: RectParams) -> None:
        self.parts.append(
            f'<rect x="{x}" y="{y}" width="{width}" height="{height}" '
            f'rx="{params.r}" ry="{params.r}" fill="{params.fill}" '
            f'fill-opacity="{params.fill_opacity}" stroke="{params.stroke}" '
            f'stroke-width="{params.stroke_width}" />'
        )

    def render_text(self, text: str, x: int, y: int, font_size: int, anchor: TextAnchor) -> None:
        lines = text.split("\n")
        if len(lines) == 1:
            body = _escape_xml(text)
        else:
            # One tspan per line, each a font height below the previous one
            body = "".join(
                f'<tspan x="{x}" dy="{0 if i == 0 else font_size}">{_escape_xml(line)}</tspan>'
                for i, line in enumerate(lines)
            )
        self.parts.append(
            f'<text x="{x}" y="{y}" font-size="{font_size}" text-anchor="{anchor}" '
            f'dominant-baseline="hanging">{body}</text>'
        )

    def render_line(
        self,
        p1: Point,
        p2: Point,
        width: int,
        dash: int,
        stroke: str,
        marker_end: str | None = None,
    ) -> None:
        marker = f' marker-end="url(#{marker_end})"' if marker_end else ""
        self.parts.append(
            f'<line x1="{p1.x}" y1="{p1.y}" x2="{p2.x}" y2="{p2.y}" '
            f'stroke="{stroke}" stroke-width="{width}" stroke-dasharray="{dash}"{marker} />'
        )

    def render_arrow(self, p1: Point, p2: Point, dash: int) -> None:
        self.render_line(p1, p2, 1, dash, "black", ARROW_HEAD_ID)

    def render_circle(self, center: Point, r: int, color: str) -> None:
        self.parts.append(
            f'<circle cx="{center.x}" cy="{center.y}" r="{r}" fill="{color}" stroke="{color}" />'
        )

    def render_stickman(self, x: int, y: int, width: int, height: int) -> None:
        x_offset = width // 2
        third = height // 3
        limbs = [
            (Point(x - x_offset, y), Point(x, y - third)),  # left leg
            (Point(x + x_offset, y), Point(x, y - third)),  # right leg
            (Point(x, y - third), Point(x, y - third * 2)),  # torso
            (Point(x - x_offset, y - height * 5 // 8), Point(x, y - height // 2)),  # left arm
            (Point(x + x_offset, y - height * 5 // 8), Point(x, y - height // 2)),  # right arm
        ]
        for p1, p2 in limbs:
            self.render_line(p1, p2, GLYPH_STROKE_WIDTH, 0, MEDIUM_BLUE)
        self.render_circle(Point(x, y - height * 5 // 6), third // 2, MEDIUM_BLUE)

    def render_db_icon(self, x: int, y: int, width: int, height: int) -> None:
        left_x = x - width // 2
        vu = height // 6
        # Bottom arc, right side up, top arc back, left side down, then the
        # visible front of the lid
        d = (
            f"M {left_x} {y - vu} "
            f"c 0 {vu} {width} {vu} {width} 0 "
            f"v {-4 * vu} "
            f"c 0 {-vu} {-width} {-vu} {-width} 0 "
            f"v {4 * vu} "
            f"m 0 {-4 * vu} "
            f"c 0 {vu} {width} {vu} {width} 0"
        )
        self.parts.append(
            f'<path d="{d}" stroke="{MEDIUM_BLUE}" stroke-width="{GLYPH_STROKE_WIDTH}" fill="{LIGHT_BLUE}" />'
        )

    def render_note(self, x: int, y: int, width: int, height: int) -> None:
        fold = 8
        self.parts.append(
            f'<path d="M {x} {y} h {width - fold} l {fold} {fold} v {height - fold} '
            f'h {-width} z" fill="{NOTE_FILL}" stroke="{NOTE_STROKE}" stroke-width="2" />'
        )
        self.parts.append(
            f'<polyline points="{x + width - fold},{y} {x + width - fold},{y + fold} '
            f'{x + width},{y + fold}" fill="none" stroke="{NOTE_STROKE}" stroke-width="2" />'
        )


def render_svg(diagram: SequenceDiagram, show_debug_lines: bool = False) -> str:
    """Lay out the diagram and render it with the SVG backend."""
    grid = calculate_grid(diagram)
    renderer = SvgRenderer(grid.width, grid.height)
    render_diagram(diagram, renderer, grid, show_debug_lines)
    return renderer.as_string()


def _arrow_marker_def() -> str:
    return (
        f'  <marker id="{ARROW_HEAD_ID}" markerWidth="20" markerHeight="20" '
        f'markerUnits="userSpaceOnUse" refX="18" refY="6" orient="auto">\n'
        f'    <path d="M0,0 L0,12 L18,6 z" />\n'
        f"  </marker>"
    )


def _escape_xml(text: str) -> str:
    """Escape special XML characters in text content."""
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
        .replace("'", "&#39;")
    )
