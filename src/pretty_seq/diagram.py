from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import Literal

from .errors import ModelError
from .events import (
    AltCase,
    GroupEnded,
    GroupStarted,
    MessageSent,
    Note,
    ParticipantCreated,
    Separator,
    TimelineEvent,
)
from .types import (
    GROUP_KINDS,
    Activation,
    AltGroup,
    DiagramConfig,
    Group,
    LeftOf,
    LineStyle,
    Message,
    NoteOrientation,
    Over,
    Participant,
    ParticipantKind,
    RightOf,
    SimpleGroup,
)

logger = logging.getLogger(__name__)


class SequenceDiagram:
    """A sequence diagram under construction.

    Built strictly in source order through the add_*/activate/group methods.
    Row 0 of the timeline holds one ParticipantCreated event per participant;
    every other statement appends a row, except notes attached to the
    previous message. Calling finish() (done by calculate_grid) freezes it.
    """

    def __init__(self, config: DiagramConfig | None = None):
        self.config = config if config is not None else DiagramConfig()
        self._participants: list[Participant] = []
        self._participant_index: dict[str, int] = {}
        self._groups: list[Group] = []
        self._timeline: list[list[TimelineEvent]] = [[]]
        self._active_groups: list[int] = []
        self._last_message: tuple[int, Message] | None = None
        self._finished = False

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def participants(self) -> Sequence[Participant]:
        return self._participants

    @property
    def groups(self) -> Sequence[Group]:
        return self._groups

    @property
    def timeline(self) -> Sequence[Sequence[TimelineEvent]]:
        return self._timeline

    @property
    def is_finished(self) -> bool:
        return self._finished

    @property
    def last_message(self) -> Message | None:
        return self._last_message[1] if self._last_message is not None else None

    def participant(self, handle: int) -> Participant:
        return self._participants[handle]

    def group(self, handle: int) -> Group:
        return self._groups[handle]

    def find_participant(self, name: str) -> Participant | None:
        idx = self._participant_index.get(name)
        return self._participants[idx] if idx is not None else None

    # ------------------------------------------------------------------
    # Participants and messages
    # ------------------------------------------------------------------

    def add_participant(
        self,
        name: str,
        label: str | None = None,
        kind: ParticipantKind = "participant",
    ) -> int:
        """Add a participant in the next column and return its handle."""
        self._check_not_finished()
        if name in self._participant_index:
            raise ModelError(f"Participant '{name}' is already defined")

        idx = len(self._participants)
        participant = Participant(name=name, label=label if label is not None else name, kind=kind, idx=idx)
        self._participants.append(participant)
        self._participant_index[name] = idx
        self._timeline[0].append(ParticipantCreated(participant=idx))
        return idx

    def _get_or_create_participant(self, name: str) -> int:
        idx = self._participant_index.get(name)
        if idx is not None:
            return idx
        logger.debug("Creating participant '%s' on first use", name)
        return self.add_participant(name)

    def add_message(
        self,
        from_: str,
        to: str,
        label: str = "",
        style: LineStyle = "solid",
    ) -> Message:
        """Append a message row, creating unknown participants on the fly."""
        self._check_not_finished()
        message = Message(
            from_=self._get_or_create_participant(from_),
            to=self._get_or_create_participant(to),
            label=label,
            style=style,
        )
        row = len(self._timeline)
        self._timeline.append([MessageSent(message=message)])
        self._last_message = (row, message)
        return message

    # ------------------------------------------------------------------
    # Activations
    # ------------------------------------------------------------------

    def activate(self, name: str, row: int | None = None) -> Activation:
        """Open an activation on a participant.

        Starts at `row`, or at the last message's row when omitted; with no
        message yet the activation is open from the top of the diagram.
        """
        self._check_not_finished()
        idx = self._get_or_create_participant(name)
        if row is None and self._last_message is not None:
            row = self._last_message[0]
        return self._participants[idx].activate(row)

    def deactivate(self, name: str, row: int | None = None) -> None:
        """Close the participant's most recently opened activation."""
        self._check_not_finished()
        participant = self.find_participant(name)
        if participant is None:
            raise ModelError(f"Missing participant for deactivate: {name}")
        if row is None:
            row = len(self._timeline) - 1
        if not participant.deactivate(row):
            raise ModelError(f"Attempting to deactivate participant with no activation: {name}")

    # ------------------------------------------------------------------
    # Groups
    # ------------------------------------------------------------------

    def start_group(self, kind: str, header: str = "") -> int:
        """Open a group in a new row and return its handle."""
        self._check_not_finished()
        if kind not in GROUP_KINDS:
            raise ModelError(f"Unexpected group type: {kind}")

        start = len(self._timeline)
        font_size = self.config.group_font_size
        group: Group
        if kind == "alt":
            group = AltGroup(start=start, label="alt", header=header, font_size=font_size)
        elif kind == "group":
            # Plain groups show their header text in the label tab
            group = SimpleGroup(start=start, label=header or "group", header="", font_size=font_size)
        else:
            group = SimpleGroup(start=start, label=kind, header=header, font_size=font_size)

        handle = len(self._groups)
        self._groups.append(group)
        self._active_groups.append(handle)
        self._timeline.append([GroupStarted(group=handle)])
        logger.debug("Started %s group %d at row %d", kind, handle, start)
        return handle

    def add_alt_case(self, label: str = "") -> int:
        """Add an "else" divider to the innermost open group, which must be an alt."""
        self._check_not_finished()
        if not self._active_groups:
            raise ModelError("else without active alt group")
        handle = self._active_groups[-1]
        group = self._groups[handle]
        if not isinstance(group, AltGroup):
            raise ModelError("else when active group is not an 'alt' group")

        group.add_case(label, len(self._timeline))
        self._timeline.append([AltCase(group=handle)])
        return handle

    def end_group(self) -> int:
        """Close the innermost open group."""
        self._check_not_finished()
        if not self._active_groups:
            raise ModelError("Found end without active group")
        handle = self._active_groups.pop()
        end = len(self._timeline)
        self._groups[handle].close(end)
        self._timeline.append([GroupEnded(group=handle)])
        logger.debug("Ended group %d at row %d", handle, end)
        return handle

    # ------------------------------------------------------------------
    # Notes and separators
    # ------------------------------------------------------------------

    def add_note(self, label: str, orientation: NoteOrientation, new_row: bool = True) -> Note:
        """Add a note, either in a new row or sharing the last row."""
        self._check_not_finished()
        if isinstance(orientation, Over):
            handles: tuple[int, ...] = orientation.participants
            if not handles:
                raise ModelError("Note over requires at least one participant")
        else:
            handles = (orientation.participant,)
        for handle in handles:
            if not 0 <= handle < len(self._participants):
                raise ModelError(f"Note references unknown participant handle {handle}")

        note = Note(label=label, orientation=orientation)
        if new_row:
            self._timeline.append([note])
        else:
            self._timeline[-1].append(note)
        return note

    def add_note_left_of(self, name: str, label: str, new_row: bool = True) -> Note:
        return self.add_note(label, LeftOf(self._require_participant(name)), new_row)

    def add_note_right_of(self, name: str, label: str, new_row: bool = True) -> Note:
        return self.add_note(label, RightOf(self._require_participant(name)), new_row)

    def add_note_over(self, names: Iterable[str], label: str, new_row: bool = True) -> Note:
        handles = tuple(self._require_participant(name) for name in names)
        return self.add_note(label, Over(handles), new_row)

    def add_message_note(self, label: str, side: Literal["left", "right"]) -> Note:
        """Annotate the last message, outside whichever end lies on `side`."""
        self._check_not_finished()
        if self._last_message is None:
            raise ModelError("Adding note for message before defining any messages")
        row, message = self._last_message
        left, right = message.col_range
        orientation: NoteOrientation = LeftOf(left) if side == "left" else RightOf(right)
        note = Note(label=label, orientation=orientation)
        self._timeline[row].append(note)
        return note

    def add_separator(self, label: str) -> Separator:
        self._check_not_finished()
        separator = Separator(label=label)
        self._timeline.append([separator])
        return separator

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def finish(self) -> None:
        """Validate that construction is complete and freeze the diagram."""
        if self._finished:
            return
        if self._active_groups:
            open_labels = ", ".join(self._groups[h].label for h in self._active_groups)
            raise ModelError(f"Group with no closing end keyword: {open_labels}")
        self._finished = True

    def _check_not_finished(self) -> None:
        if self._finished:
            raise ModelError("Diagram is already finished and can no longer be modified")

    def _require_participant(self, name: str) -> int:
        idx = self._participant_index.get(name)
        if idx is None:
            raise ModelError(f"Note references unknown participant: {name}")
        return idx
