"""Tests for drawing timeline events and for the SVG backend.

Events are drawn onto a recording renderer so the emitted primitives can be
checked against the resolved grid without parsing any markup.
"""
from __future__ import annotations

import re

import pytest

from pretty_seq.diagram import SequenceDiagram
from pretty_seq.layout import calculate_grid
from pretty_seq.renderer import SvgRenderer, render_diagram, render_svg
from pretty_seq.styles import DEBUG_LINE, MEDIUM_PURPLE, string_width
from pretty_seq.types import DiagramConfig, Point, RectParams


class RecordingRenderer:
    """Renderer that records every primitive call as (name, args)."""

    def __init__(self):
        self.calls: list[tuple] = []

    def _record(self, name, *args):
        self.calls.append((name, *args))

    def render_rect(self, x, y, width, height, params):
        self._record("rect", x, y, width, height, params)

    def render_text(self, text, x, y, font_size, anchor):
        self._record("text", text, x, y, font_size, anchor)

    def render_line(self, p1, p2, width, dash, stroke, marker_end=None):
        self._record("line", p1, p2, width, dash, stroke)

    def render_arrow(self, p1, p2, dash):
        self._record("arrow", p1, p2, dash)

    def render_circle(self, center, r, color):
        self._record("circle", center, r, color)

    def render_stickman(self, x, y, width, height):
        self._record("stickman", x, y, width, height)

    def render_db_icon(self, x, y, width, height):
        self._record("db_icon", x, y, width, height)

    def render_note(self, x, y, width, height):
        self._record("note", x, y, width, height)

    def of(self, name: str) -> list[tuple]:
        return [c[1:] for c in self.calls if c[0] == name]


def draw(diagram: SequenceDiagram, **kwargs):
    renderer = RecordingRenderer()
    grid = render_diagram(diagram, renderer, **kwargs)
    return renderer, grid


# ============================================================================
# Participants
# ============================================================================


class TestParticipantDrawing:
    def test_draws_lifeline_and_both_boxes(self):
        d = SequenceDiagram()
        d.add_participant("A")
        d.add_message("A", "A", "x")
        r, grid = draw(d)

        footer_top = grid.row_top(grid.num_rows - 1)
        center = grid.col_center(0)
        assert (Point(center, grid.row_bottom(0)), Point(center, footer_top), 3, 0) == r.of("line")[0][:4]

        boxes = [c for c in r.of("rect") if c[4].r == 10]
        assert [(b[1], b[3]) for b in boxes] == [(grid.row_bottom(0) - 100, 100), (footer_top, 100)]
        assert [t[0] for t in r.of("text")].count("A") == 2

    def test_actor_and_database_use_glyphs(self):
        d = SequenceDiagram()
        d.add_participant("user", kind="actor")
        d.add_participant("db", kind="database")
        r, _ = draw(d)
        assert len(r.of("stickman")) == 2
        assert len(r.of("db_icon")) == 2

    def test_activation_bars_fan_out_by_nesting(self):
        d = SequenceDiagram()
        d.add_participant("A")
        d.add_message("A", "A", "outer")
        d.activate("A")
        d.add_message("A", "A", "inner")
        d.activate("A")
        d.deactivate("A")
        d.deactivate("A")
        r, grid = draw(d)

        center = grid.col_center(0)
        bars = [c for c in r.of("rect") if c[2] == 10]
        assert [b[0] for b in bars] == [center - 5, center - 5 + 3]
        assert bars[0][1] == grid.row_bottom(1) - 10
        assert bars[1][1] == grid.row_bottom(2) - 10

    def test_open_activation_runs_to_the_last_content_row(self):
        d = SequenceDiagram()
        d.add_participant("A")
        d.activate("A")
        d.add_message("A", "A", "x")
        r, grid = draw(d)
        bar = [c for c in r.of("rect") if c[2] == 10][0]
        assert bar[1] == grid.row_top(1)
        assert bar[1] + bar[3] == grid.row_bottom(grid.num_rows - 2)


# ============================================================================
# Messages
# ============================================================================


class TestMessageDrawing:
    def test_regular_arrow_sits_above_the_row_bottom(self):
        d = SequenceDiagram()
        d.add_message("A", "B", "hello", "dashed")
        r, grid = draw(d)
        y = grid.row_bottom(1) - 10
        assert r.of("arrow") == [(Point(grid.col_center(0), y), Point(grid.col_center(1), y), 10)]
        label = [t for t in r.of("text") if t[0] == "hello"][0]
        assert label[1] == (grid.col_center(0) + grid.col_center(1)) // 2
        assert label[4] == "middle"

    def test_arrow_attaches_to_activation_edge(self):
        d = SequenceDiagram()
        d.add_participant("A")
        d.add_participant("B")
        d.add_message("A", "B", "call")
        d.activate("B")
        d.add_message("B", "A", "return")
        d.deactivate("B")
        r, grid = draw(d)
        call, ret = r.of("arrow")
        assert call[1].x == grid.col_center(1) - 5
        assert ret[0].x == grid.col_center(1) - 5

    def test_self_message_loops_to_the_right(self):
        d = SequenceDiagram()
        d.add_message("A", "A", "think")
        r, grid = draw(d)
        center = grid.col_center(0)
        (start, end, dash), = r.of("arrow")
        assert start.x == center + 35
        assert end.x == center
        assert dash == 0
        label = [t for t in r.of("text") if t[0] == "think"][0]
        assert label[1] == center + 45
        assert label[4] == "start"

    @pytest.mark.parametrize(
        "label, config",
        [
            ("one\ntwo\nthree", DiagramConfig()),
            ("one", DiagramConfig(message_font_size=60)),
        ],
    )
    def test_labels_stay_inside_their_row(self, label, config):
        d = SequenceDiagram(config)
        d.add_message("A", "B", "first")
        d.add_message("A", "B", label)
        d.add_message("B", "B", label)
        r, grid = draw(d)
        font_size = config.message_font_size
        line_count = label.count("\n") + 1

        for row in (2, 3):
            text = [t for t in r.of("text") if t[0] == label][row - 2]
            assert text[2] >= grid.row_top(row)
            assert text[2] + font_size * line_count <= grid.row_bottom(row)

    def test_self_message_label_fits_before_the_next_lifeline(self):
        d = SequenceDiagram()
        d.add_participant("A")
        d.add_participant("B")
        d.add_message("A", "A", "a label long enough to need the whole gap")
        r, grid = draw(d)
        label = [t for t in r.of("text") if t[0].startswith("a label")][0]
        width = string_width(label[0], d.config.message_font_size)
        assert label[1] + width <= grid.col_center(1)


# ============================================================================
# Groups, notes, separators
# ============================================================================


class TestGroupDrawing:
    def test_group_box_wraps_touched_columns(self):
        d = SequenceDiagram()
        for name in ("A", "B", "C"):
            d.add_participant(name)
        d.start_group("alt", "ok")
        d.add_message("A", "C", "go")
        d.add_alt_case("fail")
        d.add_message("C", "A", "no")
        d.end_group()
        r, grid = draw(d)

        box = [c for c in r.of("rect") if c[4].stroke == MEDIUM_PURPLE and c[4].fill_opacity == 0.2][0]
        left, right = grid.col_center(0), grid.col_center(2)
        assert box[0] == left - 10
        assert box[2] == right - left + 20
        assert box[1] == grid.row_top(1)
        assert box[1] + box[3] == grid.row_bottom(5)

        texts = [t[0] for t in r.of("text")]
        assert "alt" in texts
        assert "[ok]" in texts
        assert "[fail]" in texts

        dividers = [c for c in r.of("line") if c[4] == MEDIUM_PURPLE]
        assert len(dividers) == 1
        assert dividers[0][0].y == grid.row_top(3)


class TestNoteDrawing:
    def test_left_and_right_notes_flank_the_lifeline(self):
        d = SequenceDiagram()
        d.add_participant("A")
        d.add_participant("B")
        d.add_message("A", "B", "hi")
        d.add_message_note("L", "left")
        d.add_message_note("R", "right")
        r, grid = draw(d)

        left_note, right_note = r.of("note")
        assert left_note[0] + left_note[2] == grid.col_center(0) - 10
        assert left_note[0] >= 0
        assert right_note[0] == grid.col_center(1) + 10
        assert right_note[0] + right_note[2] <= grid.width

    def test_over_note_is_clamped_inside_the_diagram(self):
        d = SequenceDiagram()
        d.add_participant("A")
        d.add_participant("B")
        d.add_note_over(["A"], "a note much wider than a single participant column")
        r, grid = draw(d)
        (x, _, width, _), = r.of("note")
        assert x >= 0
        assert x + width <= grid.width

    def test_multi_line_note_text_is_passed_through(self):
        d = SequenceDiagram()
        d.add_participant("A")
        d.add_note_right_of("A", "one\ntwo")
        r, _ = draw(d)
        assert "one\ntwo" in [t[0] for t in r.of("text")]


class TestSeparatorDrawing:
    def test_two_full_width_rules_and_a_centered_label(self):
        d = SequenceDiagram()
        d.add_participant("A")
        d.add_participant("B")
        d.add_separator("Phase 2")
        r, grid = draw(d)

        rules = [c for c in r.of("line") if c[4] == MEDIUM_PURPLE]
        assert len(rules) == 2
        for p1, p2, *_ in rules:
            assert (p1.x, p2.x) == (0, grid.width)
        label = [t for t in r.of("text") if t[0] == "Phase 2"][0]
        assert label[1] == grid.width // 2


class TestDebugLines:
    def test_debug_overlay_draws_every_bound(self):
        d = SequenceDiagram()
        d.add_message("A", "B", "x")
        r, grid = draw(d, show_debug_lines=True)
        debug = [c for c in r.of("line") if c[4] == DEBUG_LINE]
        assert len(debug) == len(grid.cols) + len(grid.row_bounds)


# ============================================================================
# SVG backend
# ============================================================================


class TestSvgRenderer:
    def test_wraps_elements_in_svg_root_with_arrow_marker(self):
        svg = SvgRenderer(100, 50)
        svg.render_rect(1, 2, 3, 4, RectParams(r=2))
        out = svg.as_string()
        assert out.startswith('<svg xmlns="http://www.w3.org/2000/svg" viewBox="-5 -5 110 60"')
        assert '<marker id="arrow"' in out
        assert '<rect x="1" y="2" width="3" height="4" rx="2" ry="2"' in out
        assert out.endswith("</svg>")

    def test_escapes_text(self):
        svg = SvgRenderer(100, 50)
        svg.render_text("a < b & c", 10, 10, 12, "start")
        assert "a &lt; b &amp; c" in svg.as_string()

    def test_multi_line_text_uses_tspans(self):
        svg = SvgRenderer(100, 50)
        svg.render_text("one\ntwo", 10, 20, 12, "middle")
        out = svg.as_string()
        assert '<tspan x="10" dy="0">one</tspan><tspan x="10" dy="12">two</tspan>' in out

    def test_arrow_references_marker(self):
        svg = SvgRenderer(100, 50)
        svg.render_arrow(Point(0, 5), Point(50, 5), 10)
        assert 'stroke-dasharray="10" marker-end="url(#arrow)"' in svg.as_string()

    def test_stickman_is_five_limbs_and_a_head(self):
        svg = SvgRenderer(100, 200)
        svg.render_stickman(50, 150, 70, 90)
        out = svg.as_string()
        assert len(re.findall(r"<line ", out)) == 5
        assert len(re.findall(r"<circle ", out)) == 1

    def test_render_svg_sizes_canvas_from_grid(self):
        d = SequenceDiagram()
        d.add_message("A", "B", "hello")
        out = render_svg(d)
        grid = calculate_grid(d)
        assert f'viewBox="-5 -5 {grid.width + 10} {grid.height + 10}"' in out
