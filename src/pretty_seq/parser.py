from __future__ import annotations

import logging
import re

from .diagram import SequenceDiagram
from .errors import ModelError, ParseError
from .types import DiagramConfig, ParticipantKind

logger = logging.getLogger(__name__)

# ============================================================================
# Sequence diagram text front end
#
# Parses a PlantUML-style sequence diagram and replays it, statement by
# statement, through the SequenceDiagram construction API.
#
# Supported syntax:
#   @startuml / @enduml             (ignored)
#   ' comment                       (ignored)
#   participant Alice
#   actor "Some User" as user
#   database db
#   A -> B: Solid arrow
#   A --> B: Dashed arrow
#   B <- A: Reversed arrow
#   A -> B ++: Activate target
#   B -> A --: Deactivate source
#   activate A / deactivate A
#   group Label ... end
#   alt Label ... else Label ... end
#   loop|opt|par|critical|break Label ... end
#   note left: Text                 (beside the last message)
#   note right of A: Text
#   note over A, B: Text
#   == Section ==
#
# "\n" inside a label starts a new line.
# ============================================================================

_PARTICIPANT_RE = re.compile(
    r'^(participant|actor|database)\s+(?:"([^"]*)"|(\S+))(?:\s+as\s+(\S+))?$'
)
_MESSAGE_RE = re.compile(
    r"^(\S+?)\s*(<--|<-|-->|->)\s*([^\s:]+?)\s*(\+\+|--)?\s*(?::\s*(.*))?$"
)
_GROUP_RE = re.compile(r"^(group|alt|loop|opt|par|critical|break)(?:\s+(.*))?$")
_ELSE_RE = re.compile(r"^else(?:\s+(.*))?$")
_ACTIVATION_RE = re.compile(r"^(activate|deactivate)\s+(\S+)$")
_NOTE_SIDE_OF_RE = re.compile(r"^note\s+(left|right)\s+of\s+(\S+?)\s*:\s*(.*)$", re.IGNORECASE)
_NOTE_OVER_RE = re.compile(r"^note\s+over\s+([^:]+?)\s*:\s*(.*)$", re.IGNORECASE)
_MESSAGE_NOTE_RE = re.compile(r"^note\s+(left|right)\s*(?::\s*(.*))?$", re.IGNORECASE)
_SEPARATOR_RE = re.compile(r"^==\s*(.*?)\s*==$")

_IGNORED = ("@startuml", "@enduml")


def build_diagram(source: str, config: DiagramConfig | None = None) -> SequenceDiagram:
    """Parse diagram source into a finished SequenceDiagram.

    Raises ParseError for statements that don't match the grammar and
    ModelError (prefixed with the line number) for invalid diagrams.
    """
    diagram = SequenceDiagram(config)
    statements = 0

    for line_number, raw in enumerate(source.splitlines(), start=1):
        line = raw.strip()
        if not line or line.startswith("'") or line.lower() in _IGNORED:
            continue
        try:
            _apply_statement(diagram, line)
        except ModelError as err:
            raise ModelError(f"line {line_number}: {err}") from err
        except ParseError as err:
            raise ParseError(str(err), line_number, line) from err
        statements += 1

    diagram.finish()
    logger.debug("Built diagram from %d statements", statements)
    return diagram


def _apply_statement(diagram: SequenceDiagram, line: str) -> None:
    # --- Participant declaration ---
    # 'participant Alice', 'actor "Some User" as user', 'database db'
    participant_match = _PARTICIPANT_RE.match(line)
    if participant_match:
        kind: ParticipantKind = participant_match.group(1)  # type: ignore[assignment]
        quoted, ident, alias = participant_match.group(2, 3, 4)
        label = quoted if quoted is not None else ident
        diagram.add_participant(alias or label, label=_unescape(label), kind=kind)
        return

    # --- Notes: the "of"/"over" forms before the bare message note ---
    side_match = _NOTE_SIDE_OF_RE.match(line)
    if side_match:
        side, name, label = side_match.groups()
        if side.lower() == "left":
            diagram.add_note_left_of(name, _unescape(label.strip()))
        else:
            diagram.add_note_right_of(name, _unescape(label.strip()))
        return

    over_match = _NOTE_OVER_RE.match(line)
    if over_match:
        names = [n.strip() for n in over_match.group(1).split(",") if n.strip()]
        diagram.add_note_over(names, _unescape(over_match.group(2).strip()))
        return

    message_note_match = _MESSAGE_NOTE_RE.match(line)
    if message_note_match:
        side = message_note_match.group(1).lower()
        label = (message_note_match.group(2) or "").strip()
        diagram.add_message_note(_unescape(label), "left" if side == "left" else "right")
        return

    # --- Separator ---
    separator_match = _SEPARATOR_RE.match(line)
    if separator_match:
        diagram.add_separator(_unescape(separator_match.group(1)))
        return

    # --- Message ---
    # LEFT ARROW RIGHT [++|--] [: label]; checked before the keywords so a
    # participant may be called "group" or "end"
    message_match = _MESSAGE_RE.match(line)
    if message_match:
        _apply_message(diagram, message_match)
        return

    # --- Groups ---
    group_match = _GROUP_RE.match(line)
    if group_match:
        diagram.start_group(group_match.group(1), _unescape((group_match.group(2) or "").strip()))
        return

    else_match = _ELSE_RE.match(line)
    if else_match:
        diagram.add_alt_case(_unescape((else_match.group(1) or "").strip()))
        return

    if line == "end":
        diagram.end_group()
        return

    # --- Explicit activation ---
    activation_match = _ACTIVATION_RE.match(line)
    if activation_match:
        if activation_match.group(1) == "activate":
            diagram.activate(activation_match.group(2))
        else:
            diagram.deactivate(activation_match.group(2))
        return

    raise ParseError(f"Unrecognised statement: {line}")


def _apply_message(diagram: SequenceDiagram, match: re.Match[str]) -> None:
    left, arrow, right, modifier, label = match.groups()
    style = "dashed" if "--" in arrow else "solid"
    # '<-' arrows point from the right participant to the left one
    if arrow.startswith("<"):
        from_, to = right, left
    else:
        from_, to = left, right

    diagram.add_message(from_, to, _unescape((label or "").strip()), style)

    if modifier == "++":
        diagram.activate(to)
    elif modifier == "--":
        diagram.deactivate(from_)


def _unescape(text: str) -> str:
    return text.replace("\\n", "\n")
