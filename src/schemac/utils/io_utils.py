"""
Centralized file I/O utilities.

- Single place for encoding
- Use Path.read_text() consistently (no raw open/read)
"""

from pathlib import Path
from typing import Union

from .config import DEFAULT_FILE_ENCODING


def read_source_file(path: Union[Path, str]) -> str:
    """Read source file with standard encoding."""
    p = Path(path) if not isinstance(path, Path) else path
    return p.read_text(encoding=DEFAULT_FILE_ENCODING)


def write_text_file(path: Union[Path, str], text: str) -> Path:
    """Write text with standard encoding, creating parent directories."""
    p = Path(path) if not isinstance(path, Path) else path
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(text, encoding=DEFAULT_FILE_ENCODING)
    return p
