# src/orchestrator/task_types.py - v1
"""File extension -> upstream task-type code."""

from __future__ import annotations

from pathlib import PurePosixPath

from docparse.core.errors import UnsupportedTypeError

EXTERNAL_PPT = 4
EXTERNAL_DOC = 5
EXTERNAL_PDF = 8

TASK_TYPES: dict[str, int] = {
    ".ppt": EXTERNAL_PPT,
    ".pptx": EXTERNAL_PPT,
    ".doc": EXTERNAL_DOC,
    ".docx": EXTERNAL_DOC,
    ".pdf": EXTERNAL_PDF,
}


def file_extension(name_or_ext: str) -> str:
    """Lower-cased extension with leading dot ('' if none).

    Accepts a file name ("report.PDF"), an extension (".pdf") or a bare
    kind ("pdf").
    """
    text = name_or_ext.strip()
    if text.startswith(".") and text.count(".") == 1 and "/" not in text:
        return text.lower()
    suffix = PurePosixPath(text).suffix
    if suffix:
        return suffix.lower()
    if text and "." not in text and "/" not in text:
        return f".{text.lower()}"
    return ""


def task_type_for(name_or_ext: str) -> int:
    """Resolve the task-type code for a file name or extension.

    Raises:
        UnsupportedTypeError: If the extension has no mapping.
    """
    ext = file_extension(name_or_ext)
    try:
        return TASK_TYPES[ext]
    except KeyError:
        supported = ", ".join(sorted(TASK_TYPES))
        raise UnsupportedTypeError(
            f"Unsupported file type: {ext or name_or_ext!r}. Supported: {supported}"
        ) from None
