"""Tests for brace expansion.

Key areas: comma lists, sequences {1..10} and {a..z}, step sequences,
nested braces, quoting and escapes.
"""

import pytest

from just_expand import Engine
from just_expand.parser import expand_braces


class TestBraceExpansionBasic:
    """Basic brace expansion with comma-separated values."""

    @pytest.mark.parametrize(
        "word,expected",
        [
            ("{a,b,c}", ["a", "b", "c"]),
            ("pre{a,b,c}", ["prea", "preb", "prec"]),
            ("{a,b,c}suf", ["asuf", "bsuf", "csuf"]),
            ("pre{a,b,c}suf", ["preasuf", "prebsuf", "precsuf"]),
            ("file.{txt,log,csv}", ["file.txt", "file.log", "file.csv"]),
            ("a{X,Y,Z}b", ["aXb", "aYb", "aZb"]),
        ],
    )
    def test_comma_list(self, word, expected):
        bash = Engine()
        assert bash.expand_braces(word) == expected


class TestBraceExpansionSequences:
    """Test numeric and alphabetic sequences."""

    @pytest.mark.parametrize(
        "word,expected",
        [
            ("{1..5}", ["1", "2", "3", "4", "5"]),
            ("{5..1}", ["5", "4", "3", "2", "1"]),
            ("{a..e}", ["a", "b", "c", "d", "e"]),
            ("{A..E}", ["A", "B", "C", "D", "E"]),
            ("{e..a}", ["e", "d", "c", "b", "a"]),
            ("{01..05}", ["01", "02", "03", "04", "05"]),
            ("{001..003}", ["001", "002", "003"]),
            ("{-3..3}", ["-3", "-2", "-1", "0", "1", "2", "3"]),
            ("a{1..3}b", ["a1b", "a2b", "a3b"]),
        ],
    )
    def test_sequence(self, word, expected):
        bash = Engine()
        assert bash.expand_braces(word) == expected

    def test_ten_values(self):
        bash = Engine()
        assert bash.expand_braces("{1..10}") == [str(n) for n in range(1, 11)]


class TestBraceExpansionStep:
    """Test sequences with a step."""

    @pytest.mark.parametrize(
        "word,expected",
        [
            ("{1..10..2}", ["1", "3", "5", "7", "9"]),
            ("{0..12..3}", ["0", "3", "6", "9", "12"]),
            ("{10..1..2}", ["10", "8", "6", "4", "2"]),
            ("{1..5..-2}", ["1", "3", "5"]),
            ("{a..z..5}", ["a", "f", "k", "p", "u", "z"]),
            ("a{0..10..2}", ["a0", "a2", "a4", "a6", "a8", "a10"]),
        ],
    )
    def test_step(self, word, expected):
        bash = Engine()
        assert bash.expand_braces(word) == expected


class TestBraceExpansionNested:
    """Test nested and combined brace expansions."""

    def test_nested_braces(self):
        bash = Engine()
        assert bash.expand_braces("{a,b{1,2},c}") == ["a", "b1", "b2", "c"]

    def test_double_nested(self):
        bash = Engine()
        assert bash.expand_braces("{a{1,2},b{3,4}}") == ["a1", "a2", "b3", "b4"]

    def test_nested_sequences(self):
        bash = Engine()
        assert bash.expand_braces("a{{1..3},{X..Z}}b") == [
            "a1b", "a2b", "a3b", "aXb", "aYb", "aZb",
        ]

    def test_multiple_braces(self):
        bash = Engine()
        assert bash.expand_braces("{a,b}{1,2}") == ["a1", "a2", "b1", "b2"]

    def test_cartesian_product(self):
        bash = Engine()
        words = bash.expand_braces("{a,b}{1,2}{x,y}")
        assert len(words) == 8
        assert words[0] == "a1x"
        assert words[-1] == "b2y"

    def test_sequence_times_list(self):
        bash = Engine()
        assert bash.expand_braces("{1..2}{0,5}%") == ["10%", "15%", "20%", "25%"]

    def test_inner_group_of_literal_braces(self):
        bash = Engine()
        assert bash.expand_braces("{a{b,c}}") == ["{ab}", "{ac}"]


class TestBraceExpansionQuotes:
    """Test brace expansion with quotes and escapes."""

    def test_double_quoted_no_expansion(self):
        bash = Engine()
        assert bash.expand_braces('"{a,b,c}"') == ["{a,b,c}"]

    def test_single_quoted_no_expansion(self):
        bash = Engine()
        assert bash.expand_braces("'{a,b,c}'") == ["{a,b,c}"]

    def test_partial_quote(self):
        bash = Engine()
        assert bash.expand_braces('"pre"{a,b}"suf"') == ["preasuf", "prebsuf"]

    def test_escaped_brace(self):
        bash = Engine()
        assert bash.expand_braces("\\{a,b\\}") == ["{a,b}"]

    def test_quotes_inside_alternatives(self):
        bash = Engine()
        assert bash.expand_braces("""{'a',b}_{c,"d"}""") == ["a_c", "a_d", "b_c", "b_d"]

    def test_mixed_escapes_and_quotes(self):
        bash = Engine()
        assert bash.expand_braces(r"""-{\X"b",'cd'}-""") == ["-Xb-", "-cd-"]

    def test_escaped_special_characters(self):
        bash = Engine()
        assert bash.expand_braces(r"-{\$,\[,\]}-") == ["-$-", "-[-", "-]-"]

    def test_quoted_comma_does_not_split(self):
        bash = Engine()
        assert bash.expand_braces("{'a,b',c}") == ["a,b", "c"]


class TestBraceExpansionEdgeCases:
    """Test edge cases."""

    def test_single_element_is_literal(self):
        bash = Engine()
        assert bash.expand_braces("{abc}") == ["{abc}"]

    def test_empty_braces_are_literal(self):
        bash = Engine()
        assert bash.expand_braces("a{}b") == ["a{}b"]

    def test_unclosed_brace_is_literal(self):
        bash = Engine()
        assert bash.expand_braces("a{b,c") == ["a{b,c"]

    @pytest.mark.parametrize(
        "word,expected",
        [
            ("a{,b,c}", ["a", "ab", "ac"]),
            ("{,a,b}x", ["x", "ax", "bx"]),
            ("{a,b,}x", ["ax", "bx", "x"]),
            ("a{X,}b", ["aXb", "ab"]),
            ("twice{,}", ["twice", "twice"]),
            ("file{,.bak}", ["file", "file.bak"]),
        ],
    )
    def test_empty_alternatives(self, word, expected):
        bash = Engine()
        assert bash.expand_braces(word) == expected

    def test_empty_words_are_dropped(self):
        bash = Engine()
        assert bash.expand_braces("{X,,Y,}") == ["X", "Y"]

    def test_quoted_empty_words_are_kept(self):
        bash = Engine()
        assert bash.expand_braces("{X,,Y,}''") == ["X", "", "Y", ""]


class TestBraceExpansionSequenceValidation:
    """Test that invalid sequences are kept literally."""

    @pytest.mark.parametrize("word", ["{1..a}", "{z..3}", "-{z..A}-", "{1..2..x}", "{ab..cd}"])
    def test_invalid_sequence_is_literal(self, word):
        bash = Engine()
        assert bash.expand_braces(word) == [word]


class TestBraceExpansionVariables:
    """Test brace expansion together with parameter expansion."""

    def test_variable_in_prefix(self):
        bash = Engine()
        bash.assign("prefix", "dir")
        assert bash.expand_braces("${prefix}/{a,b}") == ["dir/a", "dir/b"]

    def test_variable_inside_braces(self):
        bash = Engine()
        bash.assign("x", "value")
        assert bash.expand_braces("{$x,other}") == ["value", "other"]

    def test_braced_variable_inside_braces(self):
        bash = Engine()
        bash.assign("a", "A")
        assert bash.expand_braces("{${a},b}_{c,d}") == ["A_c", "A_d", "b_c", "b_d"]

    def test_parameter_operator_commas_do_not_split(self):
        bash = Engine()
        assert bash.expand_braces("{${u:-x,y},z}") == ["x,y", "z"]


class TestExpandBracesHelper:
    """Test the raw word helper, which keeps quotes for the caller."""

    def test_quotes_are_kept(self):
        assert expand_braces("{'a',b}") == ["'a'", "b"]

    def test_no_braces(self):
        assert expand_braces("plain") == ["plain"]

    def test_parameter_braces_are_not_groups(self):
        assert expand_braces("${a,b}") == ["${a,b}"]
