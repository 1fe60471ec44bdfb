"""
Pre-computed edit operations between two versions of a note.

Each version may carry the list of operations that turns its predecessor's text
into its own. The list is a shortcut for renderers; the move-aware diff never
reads it and works identically when it is missing.

Offsets always refer to the *old* text. Operations are ordered by start offset
and never overlap:

- insert: ``start == end``, ``text`` is placed at ``start``
- delete: ``old[start:end]`` is removed, ``text`` is empty
- replace: ``old[start:end]`` becomes ``text``
"""
import json
from dataclasses import asdict, dataclass
from enum import StrEnum

from diff_match_patch import diff_match_patch

_dmp = diff_match_patch()


class EditOpType(StrEnum):
    """Kind of edit operation."""

    INSERT = "insert"
    DELETE = "delete"
    REPLACE = "replace"


@dataclass(frozen=True)
class EditOp:
    """Single edit against the old text."""

    type: EditOpType
    start: int
    end: int
    text: str = ""


def _char_diff(old: str, new: str) -> list[tuple[int, str]]:
    diffs = _dmp.diff_main(old, new)
    _dmp.diff_cleanupSemantic(diffs)
    return diffs


def edit_distance(old: str, new: str) -> int:
    """Levenshtein distance (in characters) between two texts, from a semantic diff."""
    return _dmp.diff_levenshtein(_char_diff(old, new))


def compute_edit_ops(old: str, new: str) -> list[EditOp]:
    """
    Compute the edit operations turning ``old`` into ``new``.

    A deletion directly followed by an insertion is reported as a single replace.

    Args:
        old: Previous version text.
        new: New version text.

    Returns:
        Ordered list of operations, empty when the texts are equal.
    """
    ops: list[EditOp] = []
    position = 0  # offset into old
    pending_delete: tuple[int, int] | None = None

    def flush_delete() -> None:
        nonlocal pending_delete
        if pending_delete is not None:
            ops.append(EditOp(EditOpType.DELETE, pending_delete[0], pending_delete[1]))
            pending_delete = None

    for operation, text in _char_diff(old, new):
        if operation == diff_match_patch.DIFF_EQUAL:
            flush_delete()
            position += len(text)
        elif operation == diff_match_patch.DIFF_DELETE:
            flush_delete()
            pending_delete = (position, position + len(text))
            position += len(text)
        else:  # DIFF_INSERT
            if pending_delete is not None:
                start, end = pending_delete
                pending_delete = None
                ops.append(EditOp(EditOpType.REPLACE, start, end, text))
            else:
                ops.append(EditOp(EditOpType.INSERT, position, position, text))
    flush_delete()
    return ops


def apply_edit_ops(old: str, ops: list[EditOp]) -> str:
    """
    Apply operations produced by compute_edit_ops to ``old``.

    Raises:
        ValueError: If the operations are out of order, overlap, or exceed the text.
    """
    parts: list[str] = []
    cursor = 0
    for op in ops:
        if op.start < cursor or op.end < op.start or op.end > len(old):
            raise ValueError(f"Edit operation out of range: {op}")
        parts.append(old[cursor:op.start])
        if op.type != EditOpType.DELETE:
            parts.append(op.text)
        cursor = op.end
    parts.append(old[cursor:])
    return "".join(parts)


def dump_edit_ops(ops: list[EditOp]) -> str:
    """Serialize operations for the ``diff_ops_json`` column."""
    return json.dumps([asdict(op) for op in ops], ensure_ascii=False)


def load_edit_ops(raw: str) -> list[EditOp]:
    """
    Parse a ``diff_ops_json`` value.

    Raises:
        ValueError: If the value is not a JSON list of well-formed operations.
    """
    try:
        items = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid edit operations JSON: {e}") from e
    if not isinstance(items, list):
        raise ValueError("Edit operations must be a JSON list")

    ops: list[EditOp] = []
    for item in items:
        try:
            op = EditOp(
                type=EditOpType(item["type"]),
                start=int(item["start"]),
                end=int(item["end"]),
                text=str(item.get("text", "")),
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise ValueError(f"Malformed edit operation: {item!r}") from e
        ops.append(op)
    return ops
