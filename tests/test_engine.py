from __future__ import annotations

import pytest

from multirep.engine import (
    EmptyReplacementListError,
    InvalidFindTokenError,
    NullArgumentError,
    NullReplacementValueError,
    Pattern,
    ReplaceArgumentError,
    apply_patterns,
    compile_patterns,
    iter_matches,
    replace,
    replace_mapping,
    substitute,
)


def test_replaces_every_occurrence() -> None:
    assert replace("abcabc", ["abc"], ["X"]) == "XX"


def test_longer_token_wins_at_same_position() -> None:
    assert replace("aaa", ["aa", "a"], ["B"]) == "BB"


def test_longer_token_wins_regardless_of_declaration_order() -> None:
    assert replace("aaa", ["a", "aa"], ["1", "2"]) == "21"


def test_empty_find_list_returns_source() -> None:
    source = "hello"
    assert replace(source, [], ["x"]) is source
    assert replace(source, [], []) is source


def test_no_match_returns_source_unchanged() -> None:
    source = "xyz"
    assert replace(source, ["w"], [""]) is source


def test_last_replacement_reused_for_extra_find_tokens() -> None:
    assert replace("catdog", ["cat", "dog"], ["X"]) == "XX"


def test_extra_replacements_are_ignored() -> None:
    assert replace("ab", ["a"], ["1", "2", "3"]) == "1b"


def test_empty_replacement_deletes_match() -> None:
    assert replace("a-b-c", ["-"], [""]) == "abc"


def test_leftmost_match_beats_longer_later_match() -> None:
    assert replace("xabcd", ["abcd", "xa"], ["L", "S"]) == "Sbcd"


def test_earlier_declared_duplicate_wins() -> None:
    assert replace("foo", ["foo", "foo"], ["first", "second"]) == "first"


def test_equal_length_tie_goes_to_lower_index() -> None:
    patterns = compile_patterns(["ab", "ab"], ["1", "2"])
    matches = list(iter_matches("abab", patterns))
    assert [m.pattern.index for m in matches] == [0, 0]


def test_swap_is_simultaneous() -> None:
    assert replace("cat and dog", ["cat", "dog"], ["dog", "cat"]) == "dog and cat"


def test_replacement_text_is_not_rescanned() -> None:
    once = replace("a", ["a"], ["aa"])
    assert once == "aa"
    assert replace(once, ["a"], ["aa"]) == "aaaa"


def test_overlapping_occurrence_is_consumed() -> None:
    # "aba" at 0 consumes the "a" that would start the second occurrence
    assert replace("ababa", ["aba"], ["X"]) == "Xba"


def test_candidate_rescanned_after_overlap() -> None:
    # "bc" is found at 1 initially, overlapped by "ab", then found again at 4
    assert replace("abcxbc", ["ab", "bc"], ["1", "2"]) == "1cx2"


def test_candidate_dropped_when_no_later_occurrence() -> None:
    patterns = compile_patterns(["abc", "bcd"], ["1", "2"])
    matches = list(iter_matches("abcd", patterns))
    assert [(m.start, m.end, m.pattern.find) for m in matches] == [(0, 3, "abc")]


def test_match_at_end_terminates() -> None:
    assert replace("xxab", ["ab", "x"], ["!", "?"]) == "??!"


def test_unicode_text() -> None:
    assert replace("雨が降る。雨", ["雨", "降る"], ["アメ", "フル"]) == "アメがフル。アメ"


def test_output_length_matches_selected_matches() -> None:
    source = "the cat sat on the mat with another cat"
    finds = ["cat", "at", "the", "t"]
    replacements = ["C", "@", "", "TT"]
    patterns = compile_patterns(finds, replacements)
    matches = list(iter_matches(source, patterns))
    expected = len(source) + sum(len(m.pattern.replace) - (m.end - m.start) for m in matches)
    assert len(replace(source, finds, replacements)) == expected


def test_matches_are_ordered_and_disjoint() -> None:
    patterns = compile_patterns(["aa", "a", "aaa", "b"], ["x"])
    matches = list(iter_matches("aaaabaaab", patterns))
    for prev, cur in zip(matches, matches[1:]):
        assert prev.end <= cur.start
    assert [m.pattern.find for m in matches] == ["aaa", "a", "b", "aaa", "b"]


def test_repeated_calls_are_deterministic() -> None:
    args = ("abracadabra", ["abra", "a", "cad", "bra"], ["1", "2", "3"])
    assert replace(*args) == replace(*args) == "131"


def test_accepts_generators() -> None:
    finds = (token for token in ["a", "b"])
    replacements = (token for token in ["1", "2"])
    assert replace("abc", finds, replacements) == "12c"


def test_replace_mapping_uses_mapping_order() -> None:
    assert replace_mapping("aaa", {"a": "1", "aa": "2"}) == "21"
    assert replace_mapping("text", {}) == "text"


def test_compile_patterns_pairs_tokens() -> None:
    patterns = compile_patterns(["a", "b", "c"], ["1", "2"])
    assert patterns == [
        Pattern(index=0, find="a", replace="1"),
        Pattern(index=1, find="b", replace="2"),
        Pattern(index=2, find="c", replace="2"),
    ]


def test_apply_patterns_returns_source_without_matches() -> None:
    source = "nothing here"
    assert apply_patterns(source, compile_patterns(["zzz"], ["y"])) is source


@pytest.mark.parametrize(
    ("source", "finds", "replacements", "argument"),
    [
        (None, ["a"], ["b"], "source"),
        ("abc", None, ["b"], "find_tokens"),
        ("abc", ["a"], None, "replace_tokens"),
    ],
)
def test_none_arguments_raise(source, finds, replacements, argument) -> None:
    with pytest.raises(NullArgumentError) as excinfo:
        replace(source, finds, replacements)
    assert excinfo.value.argument == argument
    assert isinstance(excinfo.value, TypeError)


def test_empty_replacement_list_raises() -> None:
    with pytest.raises(EmptyReplacementListError) as excinfo:
        replace("abc", ["a"], [])
    assert excinfo.value.argument == "replace_tokens"


def test_none_replacement_value_raises() -> None:
    with pytest.raises(NullReplacementValueError) as excinfo:
        replace("abc", ["a", "b"], ["x", None])
    assert excinfo.value.argument == "replace_tokens"
    assert excinfo.value.position == 1


def test_empty_find_token_raises_before_scanning() -> None:
    with pytest.raises(InvalidFindTokenError) as excinfo:
        replace("abc", ["", "a"], ["x"])
    assert excinfo.value.argument == "find_tokens"
    assert excinfo.value.position == 0


def test_none_find_token_raises() -> None:
    with pytest.raises(InvalidFindTokenError) as excinfo:
        replace("abc", ["a", None], ["x"])
    assert excinfo.value.position == 1


def test_bare_string_find_tokens_rejected() -> None:
    with pytest.raises(InvalidFindTokenError):
        replace("abc", "abc", ["x"])


def test_validation_errors_share_base_class() -> None:
    with pytest.raises(ReplaceArgumentError):
        replace("abc", [""], ["x"])
    with pytest.raises(ValueError):
        replace("abc", ["a"], [])


def test_substitute_returns_text_and_matches() -> None:
    patterns = compile_patterns(["cat", "dog"], ["X"])
    text, matches = substitute("a cat, a dog", patterns)
    assert text == "a X, a X"
    assert [(m.start, m.end) for m in matches] == [(2, 5), (9, 12)]


def test_substitute_without_matches_returns_source() -> None:
    source = "plain"
    text, matches = substitute(source, compile_patterns(["zz"], ["y"]))
    assert text is source
    assert matches == []
