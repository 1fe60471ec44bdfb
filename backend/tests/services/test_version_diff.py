"""Tests for the move-aware matcher and highlight builder."""
import pytest

from services.version_diff import (
    SIMILARITY_THRESHOLD,
    DiffClass,
    HighlightSpan,
    added_mask,
    build_highlights,
    build_history_diffs,
    diff_against_neighbors,
    group_spans,
    present_mask,
    removed_mask,
)


def kinds_of(highlights: list, text: str, fragment: str) -> set[DiffClass]:
    """Classifications of the characters of the first occurrence of fragment."""
    start = text.index(fragment)
    return {kind for _, kind in highlights[start:start + len(fragment)]}


class TestPresentMask:
    """Tests for present_mask function."""

    @pytest.mark.parametrize(
        ("current", "other"),
        [
            ("", ""),
            ("abc", ""),
            ("", "abc"),
            ("Para1\n\nPara2", "Para2\n\nPara1"),
            ("one\ntwo\n\n\nthree\n", "three"),
            ("  \n\n  ", "x"),
        ],
    )
    def test__present_mask__length_matches_current(self, current: str, other: str) -> None:
        """Test the mask has exactly one entry per character of current."""
        assert len(present_mask(current, other, SIMILARITY_THRESHOLD)) == len(current)

    def test__present_mask__deterministic(self) -> None:
        """Test identical inputs produce identical masks."""
        current = "Intro\n\nMoved paragraph here\n\nNew ending"
        other = "Moved paragraph here\n\nIntro text\n\nOld ending"
        assert present_mask(current, other) == present_mask(current, other)

    def test__present_mask__identical_texts_fully_present(self) -> None:
        """Test an unchanged text is present everywhere."""
        text = "first\nsecond\n\nthird"
        assert all(present_mask(text, text))

    def test__present_mask__empty_other_marks_nothing(self) -> None:
        """Test nothing is present in an empty comparison text."""
        assert present_mask("abc", "") == [False, False, False]

    def test__present_mask__swapped_paragraphs_fully_present(self) -> None:
        """Test reordered paragraphs are recognised as present."""
        assert all(present_mask("Para2\n\nPara1", "Para1\n\nPara2"))

    def test__present_mask__prefers_most_similar_paragraph(self) -> None:
        """Test the best candidate wins, not the first acceptable one."""
        current = "Hello there world"
        other = "Hello there word\n\nHello there world"
        assert all(present_mask(current, other))

    def test__present_mask__source_paragraph_used_once(self) -> None:
        """Test one paragraph of the other text cannot explain two copies."""
        current = "Para1\n\nPara1"
        mask = present_mask(current, "Para1")
        assert all(mask[:6])  # first copy and its line break
        assert not any(mask[7:])  # duplicated copy

    def test__present_mask__line_pass_recovers_moved_line(self) -> None:
        """Test a line is matched even when its paragraph is too different."""
        new_line = "z" * 30
        current = f"{new_line}\nThe quick brown fox"
        mask = present_mask(current, "The quick brown fox")
        assert not any(mask[:len(new_line) + 1])
        assert all(mask[len(new_line) + 1:])

    def test__present_mask__respects_threshold(self) -> None:
        """Test blocks below the threshold are not paired."""
        current, other = "abcdefghij", "abcxyzuvwq"
        assert not any(present_mask(current, other, threshold=0.7))
        assert present_mask(current, other, threshold=0.2)[:3] == [True, True, True]

    def test__present_mask__character_edit_inside_paired_paragraph(self) -> None:
        """Test only the edited character is absent within a paired paragraph."""
        mask = present_mask("Hello World", "Hello world")
        assert mask[6] is False
        assert sum(mask) == len("Hello World") - 1

    def test__present_mask__blank_only_text(self) -> None:
        """Test blank blocks never pair with content."""
        assert not any(present_mask("   ", "abc"))


class TestChangedMasks:
    """Tests for added_mask and removed_mask functions."""

    def test__added_mask__inverts_presence(self) -> None:
        """Test characters not present are added."""
        assert added_mask("ab", [True, False]) == [False, True]

    def test__added_mask__whole_line_override(self) -> None:
        """Test a line whose visible characters are all absent is added in full."""
        current = "new line\nold"
        presence = [False] * 9 + [True] * 3
        presence[3] = True  # the space
        presence[8] = True  # the line break
        assert added_mask(current, presence) == [True] * 9 + [False] * 3

    def test__added_mask__whole_paragraph_override(self) -> None:
        """Test a paragraph with no visible match is added in full, blank lines aside."""
        current = "keep\n\nab\ncd"
        presence = [True] * 6 + [False, False, True, False, False]
        result = added_mask(current, presence)
        assert result[6:] == [True] * 5
        assert result[:6] == [False] * 6

    def test__removed_mask__same_rules(self) -> None:
        """Test removed mask applies the same override."""
        current = "gone\nstay"
        presence = [False] * 5 + [True] * 4
        assert removed_mask(current, presence) == [True] * 5 + [False] * 4

    def test__added_mask__length_mismatch(self) -> None:
        """Test a mask of the wrong length is rejected."""
        with pytest.raises(ValueError, match="Presence mask"):
            added_mask("abc", [True])


class TestBuildHighlights:
    """Tests for build_highlights function."""

    def test__build_highlights__no_masks_all_unchanged(self) -> None:
        """Test a version without neighbors is entirely unchanged."""
        text = "abc\n\ndef"
        highlights = build_highlights(text)
        assert [char for char, _ in highlights] == list(text)
        assert {kind for _, kind in highlights} == {DiffClass.UNCHANGED}

    def test__build_highlights__added_wins_over_removed(self) -> None:
        """Test a character both added and removed is reported as added."""
        highlights = build_highlights("ab", [True, False], [True, False])
        assert highlights == [("a", DiffClass.UNCHANGED), ("b", DiffClass.ADDED)]

    def test__build_highlights__removed_only(self) -> None:
        """Test a next-only mask yields removed characters."""
        highlights = build_highlights("ab", present_in_next=[True, False])
        assert highlights == [("a", DiffClass.UNCHANGED), ("b", DiffClass.REMOVED)]


class TestDiffAgainstNeighbors:
    """Tests for diff_against_neighbors function."""

    def test__diff_against_neighbors__no_neighbors(self) -> None:
        """Test every character is unchanged and order is preserved."""
        text = "Some note\n\nwith two paragraphs"
        highlights = diff_against_neighbors(text, None, None)
        assert len(highlights) == len(text)
        assert all(
            char == expected and kind == DiffClass.UNCHANGED
            for (char, kind), expected in zip(highlights, text)
        )

    def test__diff_against_neighbors__pure_addition(self) -> None:
        """Test an appended paragraph is added and the rest unchanged."""
        current = "A\n\nB\n\nC"
        highlights = diff_against_neighbors(current, previous="A\n\nB")
        assert kinds_of(highlights, current, "A\n\nB\n") == {DiffClass.UNCHANGED}
        assert kinds_of(highlights, current, "C") == {DiffClass.ADDED}
        # The previous version has one blank separator, so the second one is new
        assert highlights[5] == ("\n", DiffClass.ADDED)
        assert [char for char, _ in highlights] == list(current)

    def test__diff_against_neighbors__pure_removal(self) -> None:
        """Test a paragraph missing from the next version is removed."""
        current = "A\n\nB\n\nC"
        highlights = diff_against_neighbors(current, next_content="A\n\nB")
        assert highlights[0] == ("A", DiffClass.UNCHANGED)
        assert highlights[3] == ("B", DiffClass.UNCHANGED)
        assert highlights[6] == ("C", DiffClass.REMOVED)

    def test__diff_against_neighbors__moved_paragraphs_not_added(self) -> None:
        """Test swapping paragraphs marks zero characters as added."""
        highlights = diff_against_neighbors("Para2\n\nPara1", previous="Para1\n\nPara2")
        assert all(kind != DiffClass.ADDED for _, kind in highlights)

    def test__diff_against_neighbors__moved_paragraphs_with_edit(self) -> None:
        """Test only the edited word is highlighted after a move."""
        previous = "Shopping list for the weekend\n\nCall the plumber about the sink"
        current = "Call the plumber about the sink\n\nShopping list for the holiday"
        highlights = diff_against_neighbors(current, previous=previous)
        assert kinds_of(highlights, current, "Call the plumber") == {DiffClass.UNCHANGED}
        assert kinds_of(highlights, current, "Shopping list for the ") == {DiffClass.UNCHANGED}
        assert DiffClass.ADDED in kinds_of(highlights, current, "holiday")

    def test__diff_against_neighbors__added_wins_tie_break(self) -> None:
        """Test a character absent from both neighbors is added, not removed."""
        highlights = diff_against_neighbors(
            "Hello World", previous="Hello world", next_content="Hello wOrld",
        )
        assert highlights[6] == ("W", DiffClass.ADDED)
        assert highlights[7] == ("o", DiffClass.REMOVED)
        assert highlights[0] == ("H", DiffClass.UNCHANGED)

    def test__diff_against_neighbors__empty_previous(self) -> None:
        """Test everything is added when the previous version was empty."""
        highlights = diff_against_neighbors("abc", previous="")
        assert {kind for _, kind in highlights} == {DiffClass.ADDED}

    def test__diff_against_neighbors__empty_current(self) -> None:
        """Test an empty version has no highlights."""
        assert diff_against_neighbors("", previous="abc", next_content="def") == []


class TestBuildHistoryDiffs:
    """Tests for build_history_diffs function."""

    def test__build_history_diffs__uses_positional_neighbors(self) -> None:
        """Test newest-first ordering: the next entry is the previous version."""
        newest, oldest = "A\n\nB\n\nC", "A\n\nB"
        results = build_history_diffs([newest, oldest])

        assert len(results) == 2
        assert results[0][6] == ("C", DiffClass.ADDED)
        assert {kind for _, kind in results[1]} == {DiffClass.UNCHANGED}

    def test__build_history_diffs__single_version(self) -> None:
        """Test a lone version is unchanged."""
        results = build_history_diffs(["only"])
        assert {kind for _, kind in results[0]} == {DiffClass.UNCHANGED}

    def test__build_history_diffs__empty(self) -> None:
        """Test no versions yields no diffs."""
        assert build_history_diffs([]) == []


class TestGroupSpans:
    """Tests for group_spans function."""

    def test__group_spans__merges_runs(self) -> None:
        """Test consecutive characters of one kind become one span."""
        highlights = [
            ("a", DiffClass.UNCHANGED),
            ("b", DiffClass.UNCHANGED),
            ("c", DiffClass.ADDED),
            ("d", DiffClass.UNCHANGED),
        ]
        assert group_spans(highlights) == [
            HighlightSpan("ab", DiffClass.UNCHANGED),
            HighlightSpan("c", DiffClass.ADDED),
            HighlightSpan("d", DiffClass.UNCHANGED),
        ]

    def test__group_spans__empty(self) -> None:
        """Test no characters yields no spans."""
        assert group_spans([]) == []

    def test__group_spans__preserves_text(self) -> None:
        """Test concatenated spans reproduce the version text."""
        text = "Para2\n\nPara1 plus"
        spans = group_spans(diff_against_neighbors(text, previous="Para1\n\nPara2"))
        assert "".join(span.text for span in spans) == text
