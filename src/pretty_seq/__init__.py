"""pretty-seq: lay out and render sequence diagrams on a constraint-resolved grid."""

from __future__ import annotations

from .types import DiagramConfig, Participant, Activation, Message, SimpleGroup, AltGroup, Case
from .types import LeftOf, RightOf, Over
from .errors import SequenceDiagramError, ParseError, ModelError, LayoutError
from .diagram import SequenceDiagram
from .layout import Grid, ReservedWidth, calculate_grid
from .parser import build_diagram
from .renderer import Renderer, SvgRenderer, render_diagram, render_svg

__all__ = [
    "render_sequence",
    "build_diagram",
    "calculate_grid",
    "render_diagram",
    "render_svg",
    "SequenceDiagram",
    "DiagramConfig",
    "Grid",
    "ReservedWidth",
    "Renderer",
    "SvgRenderer",
    "Participant",
    "Activation",
    "Message",
    "SimpleGroup",
    "AltGroup",
    "Case",
    "LeftOf",
    "RightOf",
    "Over",
    "SequenceDiagramError",
    "ParseError",
    "ModelError",
    "LayoutError",
]


def render_sequence(
    source: str,
    config: DiagramConfig | None = None,
    show_debug_lines: bool = False,
) -> str:
    """Render sequence diagram source text to an SVG string."""
    diagram = build_diagram(source, config)
    return render_svg(diagram, show_debug_lines)
