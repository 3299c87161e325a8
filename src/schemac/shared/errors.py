"""
Error Reporting

Diagnostics are collected on an ErrorReporter and rendered rustc-style:

    error[E0001]: malformed application description: expected <block end>, but found '<block mapping start>'
     --> app.yaml:3:2
      |
    3 |  fields: []
      |  ^^^^^^
      |
      = help: application descriptions are YAML (or JSON) documents
"""

import os
import sys
from dataclasses import dataclass
from typing import Optional, List, Dict
from .source_location import SourceLocation


# ---------------------------------------------------------------------------
# ANSI color helpers (disabled when NO_COLOR is set)
# ---------------------------------------------------------------------------

def _use_color() -> bool:
    if os.environ.get("NO_COLOR"):
        return False
    explicit = os.environ.get("SCHEMAC_COLOR", "").lower()
    if explicit in ("0", "false", "no", "never"):
        return False
    return sys.stderr.isatty()

_BOLD   = "\033[1m"
_RED    = "\033[31m"
_BLUE   = "\033[34m"
_CYAN   = "\033[36m"
_RESET  = "\033[0m"

def _style(text: str, *codes: str, color: bool = True) -> str:
    if not color:
        return text
    prefix = "".join(codes)
    return f"{prefix}{text}{_RESET}" if prefix else text


# ---------------------------------------------------------------------------
# Error dataclass
# ---------------------------------------------------------------------------

@dataclass
class Error:
    """A single diagnostic about an application description."""
    message: str
    location: Optional[SourceLocation]
    code: Optional[str] = None
    help: Optional[str] = None
    note: Optional[str] = None
    label: Optional[str] = None


# ---------------------------------------------------------------------------
# Formatting engine
# ---------------------------------------------------------------------------

def _format_diagnostic(
    error: Error,
    source_files: Dict[str, str],
    color: bool = False,
) -> str:
    out: List[str] = []

    code_str = f"[{error.code}]" if error.code else ""
    out.append(
        _style(f"error{code_str}", _BOLD, _RED, color=color)
        + _style(f": {error.message}", _BOLD, color=color)
    )

    if error.location is None:
        out.append(_style(" --> ", _BOLD, _BLUE, color=color) + "<unknown location>")
        _append_annotations(out, error, 1, color)
        return "\n".join(out)

    loc = error.location
    source = source_files.get(loc.file)
    if source is None:
        out.append(_style(" --> ", _BOLD, _BLUE, color=color) + str(loc))
        _append_annotations(out, error, 1, color)
        return "\n".join(out)

    src_lines = source.split("\n")
    gw = max(len(str(loc.line)), 1)
    idx = loc.line - 1
    code_line = src_lines[idx] if 0 <= idx < len(src_lines) else ""

    out.append(_style(" " * gw + "--> ", _BOLD, _BLUE, color=color) + str(loc))
    out.append(_style(" " * (gw + 1) + "|", _BOLD, _BLUE, color=color))
    out.append(_style(str(loc.line).rjust(gw) + " | ", _BOLD, _BLUE, color=color) + code_line)

    col_start = max(loc.column, 1) - 1
    if loc.end_column > loc.column:
        span_len = loc.end_column - loc.column
    else:
        span_len = _guess_span(code_line, col_start)
    carets = " " * col_start + "^" * max(1, span_len)
    label_suffix = f" {error.label}" if error.label else ""
    out.append(
        _style(" " * (gw + 1) + "| ", _BOLD, _BLUE, color=color)
        + _style(carets + label_suffix, _BOLD, _RED, color=color)
    )

    _append_annotations(out, error, gw, color)
    return "\n".join(out)


def _guess_span(code_line: str, col_start: int) -> int:
    """Guess token length when end_column is unavailable."""
    if col_start >= len(code_line):
        return 1
    length = 0
    for ch in code_line[col_start:]:
        if ch in (" ", "\t", ",", ":", "]", "}"):
            break
        length += 1
    return max(1, length)


def _append_annotations(out: List[str], error: Error, gw: int, color: bool) -> None:
    if not (error.help or error.note):
        return
    out.append(_style(" " * (gw + 1) + "|", _BOLD, _BLUE, color=color))
    pad = " " * (gw + 1)
    if error.help:
        out.append(
            _style(f"{pad}= ", _BOLD, _CYAN, color=color)
            + _style("help: ", _BOLD, color=color)
            + error.help
        )
    if error.note:
        out.append(
            _style(f"{pad}= ", _BOLD, _CYAN, color=color)
            + _style("note: ", _BOLD, color=color)
            + error.note
        )


# ---------------------------------------------------------------------------
# ErrorReporter
# ---------------------------------------------------------------------------

class ErrorReporter:
    """Collects diagnostics for one compilation and renders them."""

    def __init__(self, source_files: Dict[str, str]):
        self.source_files = source_files
        self.errors: List[Error] = []

    def report_error(
        self,
        message: str,
        location: Optional[SourceLocation],
        code: Optional[str] = None,
        help: Optional[str] = None,
        note: Optional[str] = None,
        label: Optional[str] = None,
    ) -> None:
        self.errors.append(Error(
            message=message,
            location=location,
            code=code,
            help=help,
            note=note,
            label=label,
        ))

    def report(self, error: Error) -> None:
        self.errors.append(error)

    def format_error(self, error: Error, color: Optional[bool] = None) -> str:
        use_color = color if color is not None else _use_color()
        return _format_diagnostic(error, self.source_files, color=use_color)

    def format_all_errors(self, color: Optional[bool] = None) -> str:
        parts = [self.format_error(e, color=color) for e in self.errors]
        use_color = color if color is not None else _use_color()
        count = len(self.errors)
        summary = f"aborting due to {count} previous error{'s' if count != 1 else ''}"
        parts.append(
            _style("error", _BOLD, _RED, color=use_color)
            + _style(f": {summary}", _BOLD, color=use_color)
        )
        return "\n\n".join(parts)

    def has_errors(self) -> bool:
        return len(self.errors) > 0

    def error_codes(self) -> List[Optional[str]]:
        return [e.code for e in self.errors]


# ============================================================================
# Exception Classes
# ============================================================================

class SchemacError(Exception):
    """Base exception for all schemac errors"""
    def __init__(self, message: str, location: Optional[SourceLocation] = None):
        super().__init__(message)
        self.message = message
        self.location = location

    def __str__(self):
        if self.location:
            return f"{self.message}\n --> {self.location}"
        return self.message


class SchemacSourceError(SchemacError):
    """
    Error in an application description, carrying a diagnostic code.

    Raised at module seams (e.g. loading a single section); the loader turns
    it into a reported Error so that loading can continue.
    """
    def __init__(self,
                 message: str,
                 location: Optional[SourceLocation] = None,
                 error_code: str = "E0002",
                 help: Optional[str] = None,
                 note: Optional[str] = None,
                 label: Optional[str] = None):
        super().__init__(message, location)
        self.error_code = error_code
        self.help_text = help
        self.note_text = note
        self.label_text = label

    def to_error(self) -> Error:
        return Error(
            message=self.message,
            location=self.location,
            code=self.error_code,
            help=self.help_text,
            note=self.note_text,
            label=self.label_text,
        )


class SchemacImplementationError(Exception):
    """
    Error in schemac itself (invalid internal state, misuse of an API),
    never in the user's application description.
    """
    def __init__(self, message: str, error_code: str = "E9999"):
        super().__init__(message)
        self.message = message
        self.error_code = error_code

    def __str__(self):
        return f"[{self.error_code}] {self.message}"
