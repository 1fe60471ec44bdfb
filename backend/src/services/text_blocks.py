r"""
Splitting note text into line and paragraph ranges.

Ranges are half-open ``[start, end)`` character offsets into the original text:

- A line range includes its trailing ``\n`` (the final line may be unterminated).
- "a\nb" -> [0, 2), [2, 3)
- "a\n" -> [0, 2)          (no empty line after a trailing newline)
- "" -> [0, 0)             (a single degenerate line)
- "  \n" -> [0, 3)         (all-blank text keeps its real extent; it is still one
  blank line, so it yields no paragraphs)
- A paragraph is a maximal run of non-blank lines; blank lines (whitespace only)
  separate paragraphs and belong to none.
- "a\nb\n\nc" -> paragraphs [0, 4), [5, 6)
"""
from dataclasses import dataclass


@dataclass(frozen=True)
class TextRange:
    """Half-open character range ``[start, end)`` within a text."""

    start: int
    end: int

    def __len__(self) -> int:
        return self.end - self.start

    def slice(self, text: str) -> str:
        """Return the part of ``text`` covered by this range."""
        return text[self.start:self.end]

    def body(self, text: str) -> "TextRange":
        r"""Return this range without its trailing line break (``\n`` or ``\r\n``)."""
        end = self.end
        if end > self.start and text[end - 1] == "\n":
            end -= 1
            if end > self.start and text[end - 1] == "\r":
                end -= 1
        return TextRange(self.start, end)

    def overlaps(self, other: "TextRange") -> bool:
        """Whether the two ranges share at least one character."""
        return self.start < other.end and other.start < self.end


def is_blank(text: str) -> bool:
    """Whether text is empty or whitespace only."""
    return not text.strip()


def line_ranges(text: str) -> list[TextRange]:
    """
    Split text into line ranges.

    Args:
        text: The text to split.

    Returns:
        Ascending, non-overlapping ranges covering the whole text, one per line.
        Empty text yields a single degenerate range ``[0, 0)``.
    """
    if not text:
        return [TextRange(0, 0)]

    ranges: list[TextRange] = []
    start = 0
    newline = text.find("\n")
    while newline != -1:
        ranges.append(TextRange(start, newline + 1))
        start = newline + 1
        newline = text.find("\n", start)
    if start < len(text):
        ranges.append(TextRange(start, len(text)))
    return ranges


def paragraph_ranges(text: str) -> list[TextRange]:
    """
    Split text into paragraph ranges (maximal runs of non-blank lines).

    Args:
        text: The text to split.

    Returns:
        Ascending, non-overlapping ranges. Each starts at its first line and ends
        after its last line, including that line's break when present. Empty or
        all-blank text yields an empty list.
    """
    paragraphs: list[TextRange] = []
    run_start: int | None = None
    run_end = 0

    for line in line_ranges(text):
        if is_blank(line.slice(text)):
            if run_start is not None:
                paragraphs.append(TextRange(run_start, run_end))
                run_start = None
            continue
        if run_start is None:
            run_start = line.start
        run_end = line.end

    if run_start is not None:
        paragraphs.append(TextRange(run_start, run_end))
    return paragraphs


def blank_line_ranges(text: str) -> list[TextRange]:
    """Line ranges that are blank separators (belong to no paragraph)."""
    return [
        line for line in line_ranges(text)
        if len(line) > 0 and is_blank(line.slice(text))
    ]
