"""
Source Location (Span)

Locations point into application description files, or into a single
tensor type string when file is the type text itself.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class SourceLocation:
    """
    Source location: file, line, column (1-based).

    Immutable (frozen) for hashability. end_column is optional and only used
    to size the underline when rendering a diagnostic.
    """
    file: str
    line: int
    column: int
    end_column: int = 0

    def __str__(self) -> str:
        """Format as file:line:column"""
        return f"{self.file}:{self.line}:{self.column}"
