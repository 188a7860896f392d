from __future__ import annotations

# ============================================================================
# Font metrics: character width estimate shared by every timeline event.
# ============================================================================


def string_width(text: str, font_size: int) -> int:
    """Approximate rendered width in px of a single line of text."""
    return len(text) * font_size * 9 // 14


def lines_width(text: str, font_size: int) -> int:
    """Width of the longest line of a (possibly multi-line) label."""
    return max((string_width(line, font_size) for line in text.split("\n")), default=0)


# ============================================================================
# Grid constants
# ============================================================================

# Vertical gap appended below every row
ROW_MARGIN = 20

# ============================================================================
# Participant sizing
# ============================================================================

# Horizontal padding inside a participant box (added to the label width)
PARTICIPANT_BOX_PAD = 50
# Free space reserved around a participant box
PARTICIPANT_SPACE = 150
# Box corner radius
PARTICIPANT_RADIUS = 10
# Width of the stickman / datastore glyphs
GLYPH_WIDTH = 70
# Distance between the glyph baseline and the bottom of the footprint
GLYPH_LABEL_OFFSET = 45

# Activation bars
ACTIVATION_WIDTH = 10
ACTIVATION_NESTING_STEP = 3

# ============================================================================
# Messages
# ============================================================================

MESSAGE_HEIGHT = 40
# Unlabelled arrows don't need room for text
MESSAGE_UNLABELED_HEIGHT = 20
# Self-messages loop back and need room for both horizontal legs
SELF_MESSAGE_HEIGHT = 55
# Extra width reserved around a message label
MESSAGE_LABEL_MARGIN = 40
# Arrows sit this far above the bottom of their row
ARROW_DISTANCE_FROM_BOTTOM = 10
# Horizontal extent of a self-message loop
SELF_LOOP_WIDTH = 35
SELF_LOOP_RISE = 20
# Gap between a self-message loop and its label
SELF_LABEL_GAP = 10
# Gap between a message label's bottom edge and its arrow
MESSAGE_LABEL_GAP = 5

# ============================================================================
# Notes, groups, separators
# ============================================================================

NOTE_MARGIN = 10
GROUP_PAD_X = 10
SEPARATOR_PAD = 10

# ============================================================================
# Colors and strokes
# ============================================================================

LIGHT_BLUE = "#add3ff"
MEDIUM_BLUE = "#62acff"
LIGHT_PURPLE = "#e8d9ff"
MEDIUM_PURPLE = "#a66aff"
NOTE_FILL = "#fff7c2"
NOTE_STROKE = "#e0c84a"
DEBUG_LINE = "#fd5600"

LIFELINE_WIDTH = 3
GLYPH_STROKE_WIDTH = 5
DASH = 10
