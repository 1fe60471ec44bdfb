"""
Move-aware diffing between chronologically adjacent note versions.

A plain character LCS flags most of a note as changed when paragraphs are merely
reordered. Instead, blocks are paired first and characters are aligned only
inside paired blocks:

1. Paragraph pass: each paragraph of the current text (in document order) takes
   the most similar unused paragraph of the other text, provided the ratio
   reaches the threshold. A paired paragraph is consumed, so one source
   paragraph never explains two targets. Characters are then aligned by LCS
   inside the pair.
2. Line pass: lines of the current text that still have nothing marked are
   paired the same way against the other text's lines that no paragraph pair
   has consumed.
3. Anything left unmarked is absent from the other text.

Blocks are compared by their body (without the trailing line break); a paired
block's line break is marked present with it. Blank separator lines never
take part in pairing. They are present when the other text still has an
unclaimed blank line to account for them, in document order.

Pairing is greedy in document order, not a globally optimal assignment. That
keeps the paragraph pass at O(P1 * P2) similarity computations plus one LCS
per paired block. Notes made of very many tiny paragraphs degrade toward
O(n^2) comparisons; this is the scaling limit for the single-user workload.

All functions are pure and deterministic, safe to call from any thread.
"""
from collections.abc import Sequence
from dataclasses import dataclass
from enum import StrEnum

from core.versioning_limits import SIMILARITY_THRESHOLD
from services.text_blocks import (
    TextRange,
    blank_line_ranges,
    is_blank,
    line_ranges,
    paragraph_ranges,
)
from services.text_similarity import lcs_match_mask, similarity, similarity_upper_bound

__all__ = [
    "SIMILARITY_THRESHOLD",
    "DiffClass",
    "Highlight",
    "HighlightSpan",
    "added_mask",
    "build_highlights",
    "build_history_diffs",
    "diff_against_neighbors",
    "group_spans",
    "present_mask",
    "removed_mask",
]


class DiffClass(StrEnum):
    """How a character of a version relates to its neighbors."""

    UNCHANGED = "unchanged"
    ADDED = "added"  # not in the previous version
    REMOVED = "removed"  # gone in the next version


Highlight = tuple[str, DiffClass]


@dataclass(frozen=True)
class HighlightSpan:
    """A run of consecutive characters sharing one classification."""

    text: str
    kind: DiffClass


# --- Matcher ---


def present_mask(
    current: str,
    other: str,
    threshold: float = SIMILARITY_THRESHOLD,
) -> list[bool]:
    """
    Mark which characters of ``current`` also exist in ``other``, allowing for moves.

    Args:
        current: Text whose characters are classified.
        other: Comparison text (the previous or next version).
        threshold: Minimum similarity ratio for two blocks to be paired.

    Returns:
        List of len(current) booleans, True where the character is judged present
        in ``other``.
    """
    mask = [False] * len(current)
    if not current or not other:
        return mask

    other_paragraphs = paragraph_ranges(other)
    claimed_paragraphs = _pair_blocks(
        current,
        other,
        paragraph_ranges(current),
        other_paragraphs,
        mask,
        threshold,
        skip_marked=False,
    )

    consumed = [other_paragraphs[i] for i in claimed_paragraphs]
    spare_lines = [
        line for line in line_ranges(other)
        if not any(line.overlaps(paragraph) for paragraph in consumed)
    ]
    _pair_blocks(
        current,
        other,
        line_ranges(current),
        spare_lines,
        mask,
        threshold,
        skip_marked=True,
    )

    _mark_separators(current, other, mask)
    return mask


def _pair_blocks(
    current: str,
    other: str,
    blocks: Sequence[TextRange],
    candidates: Sequence[TextRange],
    mask: list[bool],
    threshold: float,
    skip_marked: bool,
) -> set[int]:
    """
    Greedily pair each block of ``current`` with its best unused candidate in ``other``.

    Marks aligned characters of paired blocks in ``mask`` and returns the indices
    of the candidates that were consumed.
    """
    candidate_bodies: list[str | None] = []
    for candidate in candidates:
        body = candidate.body(other).slice(other)
        candidate_bodies.append(None if is_blank(body) else body)

    used: set[int] = set()
    for block in blocks:
        body_range = block.body(current)
        body = body_range.slice(current)
        if is_blank(body):
            continue
        if skip_marked and any(mask[block.start:block.end]):
            continue

        best_index = -1
        best_ratio = -1.0
        for index, candidate_body in enumerate(candidate_bodies):
            if candidate_body is None or index in used:
                continue
            if similarity_upper_bound(len(body), len(candidate_body)) <= best_ratio:
                continue
            ratio = similarity(body, candidate_body)
            if ratio > best_ratio:
                best_index, best_ratio = index, ratio
                if ratio == 1.0:
                    break

        if best_index < 0 or best_ratio < threshold:
            continue

        used.add(best_index)
        sub_mask = lcs_match_mask(body, candidate_bodies[best_index] or "")
        for offset, matched in enumerate(sub_mask):
            if matched:
                mask[body_range.start + offset] = True
        for position in range(body_range.end, block.end):
            mask[position] = True
    return used


def _mark_separators(current: str, other: str, mask: list[bool]) -> None:
    """Blank lines of ``current`` are present while ``other`` has blank lines left to match."""
    available = len(blank_line_ranges(other))
    for separator in blank_line_ranges(current):
        if available == 0:
            break
        available -= 1
        for position in range(separator.start, separator.end):
            mask[position] = True


# --- Highlight builder ---


def added_mask(current: str, present_in_previous: Sequence[bool]) -> list[bool]:
    """Characters of ``current`` to highlight as added, given presence in the previous version."""
    return _changed_mask(current, present_in_previous)


def removed_mask(current: str, present_in_next: Sequence[bool]) -> list[bool]:
    """Characters of ``current`` to highlight as removed, given presence in the next version."""
    return _changed_mask(current, present_in_next)


def _changed_mask(current: str, presence: Sequence[bool]) -> list[bool]:
    """
    Invert a presence mask, then widen it to whole blocks that are entirely new.

    A non-blank line or paragraph none of whose visible characters are present
    is highlighted in full, even if its whitespace or line break was matched.
    This keeps genuinely new blocks from rendering as fragments.
    """
    if len(presence) != len(current):
        raise ValueError(
            f"Presence mask has {len(presence)} entries for {len(current)} characters",
        )

    changed = [not present for present in presence]
    for block in (*line_ranges(current), *paragraph_ranges(current)):
        if is_blank(block.slice(current)):
            continue
        has_visible_match = any(
            presence[i] and not current[i].isspace()
            for i in range(block.start, block.end)
        )
        if not has_visible_match:
            changed[block.start:block.end] = [True] * len(block)
    return changed


def build_highlights(
    current: str,
    present_in_previous: Sequence[bool] | None = None,
    present_in_next: Sequence[bool] | None = None,
) -> list[Highlight]:
    """
    Classify every character of ``current`` as unchanged, added, or removed.

    Args:
        current: The version text being rendered.
        present_in_previous: Presence mask against the previous version, if any.
        present_in_next: Presence mask against the next version, if any.

    Returns:
        One ``(char, DiffClass)`` pair per character, in order. Where a character
        is both added and removed, it is reported as added.

    Raises:
        ValueError: If a mask length differs from len(current).
    """
    added = added_mask(current, present_in_previous) if present_in_previous is not None else None
    removed = removed_mask(current, present_in_next) if present_in_next is not None else None

    highlights: list[Highlight] = []
    for i, char in enumerate(current):
        if added is not None and added[i]:
            highlights.append((char, DiffClass.ADDED))
        elif removed is not None and removed[i]:
            highlights.append((char, DiffClass.REMOVED))
        else:
            highlights.append((char, DiffClass.UNCHANGED))
    return highlights


def diff_against_neighbors(
    current: str,
    previous: str | None = None,
    next_content: str | None = None,
    threshold: float = SIMILARITY_THRESHOLD,
) -> list[Highlight]:
    """
    Diff a version against its chronological neighbors.

    Args:
        current: Content of the version being displayed.
        previous: Content of the older neighbor, or None if this is the oldest.
        next_content: Content of the newer neighbor, or None if this is the newest.
        threshold: Block similarity threshold for the matcher.

    Returns:
        One ``(char, DiffClass)`` pair per character of ``current``.
    """
    present_in_previous = (
        present_mask(current, previous, threshold) if previous is not None else None
    )
    present_in_next = (
        present_mask(current, next_content, threshold) if next_content is not None else None
    )
    return build_highlights(current, present_in_previous, present_in_next)


def build_history_diffs(
    contents: Sequence[str],
    threshold: float = SIMILARITY_THRESHOLD,
) -> list[list[Highlight]]:
    """
    Diff every version of a history against its positional neighbors.

    Args:
        contents: Version texts ordered newest first, as the store lists them.
        threshold: Block similarity threshold for the matcher.

    Returns:
        Highlights per version, in the same order. Index i + 1 is the previous
        (older) version of index i; index i - 1 is its next (newer) version.
    """
    results: list[list[Highlight]] = []
    for index, content in enumerate(contents):
        previous = contents[index + 1] if index + 1 < len(contents) else None
        next_content = contents[index - 1] if index > 0 else None
        results.append(diff_against_neighbors(content, previous, next_content, threshold))
    return results


def group_spans(highlights: Sequence[Highlight]) -> list[HighlightSpan]:
    """Run-length encode per-character highlights into spans for rendering."""
    spans: list[HighlightSpan] = []
    run: list[str] = []
    run_kind: DiffClass | None = None
    for char, kind in highlights:
        if kind != run_kind and run:
            spans.append(HighlightSpan(text="".join(run), kind=run_kind))
            run = []
        run_kind = kind
        run.append(char)
    if run and run_kind is not None:
        spans.append(HighlightSpan(text="".join(run), kind=run_kind))
    return spans
