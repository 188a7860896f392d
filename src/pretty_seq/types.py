from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Union

from .errors import ModelError
from .styles import ACTIVATION_NESTING_STEP, ACTIVATION_WIDTH, LIGHT_BLUE, MEDIUM_BLUE

# ============================================================================
# Sequence diagram model types
#
# Participants and groups live in arenas owned by SequenceDiagram and are
# addressed by integer handles: a participant's handle is its column index,
# a group's handle is its position in SequenceDiagram.groups. Timeline events
# store handles, never the objects themselves.
# ============================================================================

ParticipantKind = Literal["participant", "actor", "database"]
LineStyle = Literal["solid", "dashed"]
GroupKind = Literal["group", "alt", "loop", "opt", "par", "critical", "break"]
TextAnchor = Literal["start", "middle", "end"]

GROUP_KINDS: tuple[str, ...] = ("group", "alt", "loop", "opt", "par", "critical", "break")


# ============================================================================
# Configuration
# ============================================================================


@dataclass(frozen=True, slots=True)
class DiagramConfig:
    """Font size per entity kind, fixed for the lifetime of a diagram."""
    participant_font_size: int = 35
    message_font_size: int = 24
    note_font_size: int = 24
    group_font_size: int = 20
    separator_font_size: int = 24


# ============================================================================
# Participants and activations
# ============================================================================


@dataclass(slots=True)
class Activation:
    # Row the activation starts at; None means open from the top of the diagram
    start: int | None
    # Number of activations already open on the participant when this one started
    nesting: int
    # Row the activation ends at; None while still open
    end: int | None = None

    @property
    def is_open(self) -> bool:
        return self.end is None

    def contains(self, row: int) -> bool:
        starts_before = self.start is None or self.start <= row
        ends_after = self.end is None or self.end >= row
        return starts_before and ends_after


@dataclass(slots=True)
class Participant:
    name: str
    label: str
    kind: ParticipantKind
    # Column index, assigned once when the participant is added to a diagram
    idx: int = 0
    activations: list[Activation] = field(default_factory=list)

    def activate(self, start: int | None) -> Activation:
        nesting = sum(1 for a in self.activations if a.is_open)
        activation = Activation(start=start, nesting=nesting)
        self.activations.append(activation)
        return activation

    def deactivate(self, end: int) -> bool:
        """Close the most recently opened activation that is still open.

        Returns False when there is nothing to close.
        """
        for activation in reversed(self.activations):
            if activation.is_open:
                if activation.start is not None and end < activation.start:
                    raise ModelError(
                        f"Cannot deactivate {self.name} at row {end}, "
                        f"its activation starts at row {activation.start}"
                    )
                activation.end = end
                return True
        return False

    def count_activations_at(self, row: int) -> int:
        return sum(1 for a in self.activations if a.contains(row))

    def lifeline_offset(self, row: int) -> tuple[int, int]:
        """Left and right x offsets from the lifeline where arrows attach."""
        count = self.count_activations_at(row)
        if count == 0:
            return (0, 0)
        half = ACTIVATION_WIDTH // 2
        return (-half, half + (count - 1) * ACTIVATION_NESTING_STEP)


# ============================================================================
# Messages
# ============================================================================


@dataclass(frozen=True, slots=True)
class Message:
    # Participant handles
    from_: int
    to: int
    label: str
    style: LineStyle = "solid"

    @property
    def is_self(self) -> bool:
        return self.from_ == self.to

    @property
    def col_range(self) -> tuple[int, int]:
        return (min(self.from_, self.to), max(self.from_, self.to))


# ============================================================================
# Groups
# ============================================================================


@dataclass(slots=True)
class Case:
    row: int
    label: str


@dataclass(slots=True)
class SimpleGroup:
    # Row of the GroupStarted event
    start: int
    # Text in the label tab
    label: str
    # Bracketed text to the right of the tab, may be empty
    header: str
    font_size: int
    # Row of the GroupEnded event, set exactly once
    end: int | None = None

    @property
    def is_open(self) -> bool:
        return self.end is None

    def close(self, end: int) -> None:
        if self.end is not None:
            raise ModelError(f"Group '{self.label}' has already been ended at row {self.end}")
        if end < self.start:
            raise ModelError(f"Group cannot end at row {end} before it starts at row {self.start}")
        self.end = end


@dataclass(slots=True)
class AltGroup(SimpleGroup):
    # "else" branches, in source order
    cases: list[Case] = field(default_factory=list)

    def add_case(self, label: str, row: int) -> int:
        self.cases.append(Case(row=row, label=label))
        return len(self.cases) - 1


Group = Union[SimpleGroup, AltGroup]


# ============================================================================
# Note orientations
# ============================================================================


@dataclass(frozen=True, slots=True)
class LeftOf:
    participant: int


@dataclass(frozen=True, slots=True)
class RightOf:
    participant: int


@dataclass(frozen=True, slots=True)
class Over:
    participants: tuple[int, ...]


NoteOrientation = Union[LeftOf, RightOf, Over]


# ============================================================================
# Rendering primitives
# ============================================================================


@dataclass(frozen=True, slots=True)
class Point:
    x: int
    y: int


@dataclass(frozen=True, slots=True)
class RectParams:
    fill: str = LIGHT_BLUE
    fill_opacity: float = 1.0
    stroke: str = MEDIUM_BLUE
    stroke_width: int = 5
    r: int = 0
