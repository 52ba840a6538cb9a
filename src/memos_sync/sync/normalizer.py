"""
Snapshot Normalizer Module

Turns a remote snapshot into the target files of a sync run: archived notes
are dropped, file names are derived, note bodies are rendered. Pure: no I/O,
no settings lookups.
"""

from typing import Callable, Dict, List, Optional, Sequence, Tuple

from memos_sync.constants import MEMOS_DIR, NOTE_SUFFIX, RESOURCES_DIR, FilenameFormat
from memos_sync.errors import ConfigurationError
from memos_sync.logger import logger
from memos_sync.models import NormalizedEntry, RemoteAttachment, RemoteNote, RemoteSnapshot
from memos_sync.utils import format_timestamp_name, join_path


NoteRenderer = Callable[[RemoteNote], str]


def render_note(note: RemoteNote) -> str:
    """Default note-to-content renderer: the memo body as-is."""
    return note.content


def get_file_name(note: RemoteNote, file_name_format: FilenameFormat, now: Optional[float] = None) -> str:
    """
    Derive a note's file name (without the ``memos/`` prefix).

    Title mode uses the title verbatim; characters the filesystem rejects
    are not replaced.
    """
    fmt = _coerce_format(file_name_format)

    if fmt is FilenameFormat.ID:
        stem = note.id
    elif fmt is FilenameFormat.CREATED_AT:
        stem = format_timestamp_name(note.created_at, now=now)
    elif fmt is FilenameFormat.UPDATED_AT:
        stem = format_timestamp_name(note.updated_at, now=now)
    else:
        stem = note.title

    return f"{stem}{NOTE_SUFFIX}"


def _coerce_format(file_name_format) -> FilenameFormat:
    try:
        return FilenameFormat(file_name_format)
    except ValueError as e:
        raise ConfigurationError(f"未知的文件名格式: {file_name_format}") from e


def _dedupe(entries: List[NormalizedEntry], kind: str) -> List[NormalizedEntry]:
    """Last entry wins for a repeated path; it keeps the first occurrence's position."""
    by_path: Dict[str, int] = {}
    result: List[NormalizedEntry] = []
    for entry in entries:
        index = by_path.get(entry.relative_path)
        if index is None:
            by_path[entry.relative_path] = len(result)
            result.append(entry)
        else:
            logger.warning(f"{kind}路径冲突，后者覆盖前者: {entry.relative_path}")
            result[index] = entry
    return result


def is_safe_name(name: str) -> bool:
    """
    True if ``name`` stays inside its collection root once joined to it.

    Absolute names, ``.``/``..`` segments and empty segments (``a//b``) are
    rejected; backslashes count as separators.
    """
    if not name:
        return False
    parts = name.replace("\\", "/").split("/")
    return all(part not in ("", ".", "..") for part in parts)


def normalize_notes(notes: Sequence[RemoteNote], file_name_format: FilenameFormat,
                    renderer: NoteRenderer = render_note,
                    now: Optional[float] = None) -> List[NormalizedEntry]:
    fmt = _coerce_format(file_name_format)
    entries = []
    for note in notes:
        if note.archived:
            continue
        name = get_file_name(note, fmt, now=now)
        if not is_safe_name(name):
            logger.warning(f"笔记文件名不安全，跳过: {name!r} (id={note.id})")
            continue
        # Lone surrogates in remote JSON become "?" instead of failing the run
        content = renderer(note).encode("utf-8", errors="replace")
        entries.append(NormalizedEntry(join_path(MEMOS_DIR, name), content, note.updated_at))
    return _dedupe(entries, "笔记")


def normalize_attachments(files: Sequence[RemoteAttachment]) -> List[NormalizedEntry]:
    # Attachments are kept regardless of the owning note's archive state
    entries = []
    for f in files:
        if not f.filename:
            continue
        if not is_safe_name(f.filename):
            logger.warning(f"资源文件名不安全，跳过: {f.filename!r}")
            continue
        entries.append(NormalizedEntry(join_path(RESOURCES_DIR, f.filename), f.content, None))
    return _dedupe(entries, "资源")


def normalize_snapshot(snapshot: RemoteSnapshot, file_name_format: FilenameFormat,
                       renderer: NoteRenderer = render_note,
                       now: Optional[float] = None) -> Tuple[List[NormalizedEntry], List[NormalizedEntry]]:
    """
    Normalize a snapshot into ``(notes, attachments)``.

    Args:
        snapshot: Raw remote notes and attachments
        file_name_format: How note file names are derived
        renderer: Note-to-content collaborator
        now: Fallback time for notes without the selected timestamp

    Returns:
        Two deterministic, path-unique lists of NormalizedEntry
    """
    fmt = _coerce_format(file_name_format)
    return (
        normalize_notes(snapshot.notes, fmt, renderer=renderer, now=now),
        normalize_attachments(snapshot.files),
    )
