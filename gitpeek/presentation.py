"""Small display helpers for the file browser and code viewer."""

import re

from pygments.lexers import get_lexer_for_filename
from pygments.util import ClassNotFound

_BINARY_PATTERN = re.compile(r"[\x00-\x08\x0e-\x1f\x7f]")


def detect_language(filename: str) -> str:
    """
    Syntax highlighting language for a file name; "text" when unknown.

    Names are matched as given first, then lowercased, so "Makefile" and
    "MAIN.RS" both resolve.
    """
    name = filename.rsplit("/", 1)[-1]
    for candidate in (name, name.lower()):
        try:
            return get_lexer_for_filename(candidate).aliases[0]
        except ClassNotFound:
            continue
    return "text"


def looks_binary(content: str) -> bool:
    """Control characters outside normal whitespace suggest a binary file."""
    return bool(_BINARY_PATTERN.search(content))


def format_file_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.1f} MB"


def breadcrumbs(path: str) -> list[tuple[str, str]]:
    """
    Split a directory path into (segment, path-up-to-segment) pairs.

    Example:
        >>> breadcrumbs("src/app/")
        [('src', 'src'), ('app', 'src/app')]
    """
    segments = [segment for segment in path.split("/") if segment]
    return [(segment, "/".join(segments[: i + 1])) for i, segment in enumerate(segments)]
