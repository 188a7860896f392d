from __future__ import annotations

# ============================================================================
# Exceptions raised while building, laying out or parsing a sequence diagram.
# ============================================================================


class SequenceDiagramError(Exception):
    pass


class ParseError(SequenceDiagramError):
    """A statement in the diagram source could not be understood."""

    def __init__(self, message: str, line_number: int | None = None, line: str | None = None):
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)
        self.line_number = line_number
        self.line = line


class ModelError(SequenceDiagramError):
    pass


class LayoutError(SequenceDiagramError):
    pass
