"""Tests for positional and special parameters."""

import pytest

from just_expand import BadSubstitutionError, Engine


@pytest.fixture
def bash():
    return Engine(positional=["a", "b c", "d"], script_name="myscript")


class TestPositionalParameters:
    """Test $1 ... $N, $# and $0."""

    def test_single_digit(self, bash):
        assert bash.expand("$1") == ["a"]
        assert bash.expand("${2}") == ["b c"]
        assert bash.expand("$9") == [""]

    def test_count(self, bash):
        assert bash.expand("$#") == ["3"]
        assert bash.expand("${#}") == ["3"]

    def test_script_name(self, bash):
        assert bash.expand("$0") == ["myscript"]

    def test_multi_digit_needs_braces(self):
        bash = Engine()
        bash.set(["--"] + list("abcdefghij"))
        assert bash.expand("${10}") == ["j"]
        assert bash.expand_word("$10") == "a0"

    def test_length_of_positional(self, bash):
        assert bash.expand("${#2}") == ["3"]

    def test_default_on_missing(self, bash):
        assert bash.expand("${5:-none}") == ["none"]


class TestAllPositional:
    """Test $@ and $*."""

    def test_at_gives_one_word_each(self, bash):
        assert bash.expand("$@") == ["a", "b c", "d"]
        assert bash.expand('"$@"') == ["a", "b c", "d"]
        assert bash.expand("${@}") == ["a", "b c", "d"]

    def test_star_joins(self, bash):
        assert bash.expand("$*") == ["a b c d"]

    def test_star_joins_with_ifs(self, bash):
        bash.assign("IFS", "-")
        assert bash.expand("$*") == ["a-b c-d"]

    def test_count_via_length(self, bash):
        assert bash.expand("${#@}") == ["3"]
        assert bash.expand("${#*}") == ["3"]

    def test_empty_default(self):
        bash = Engine()
        assert bash.expand("$@") == []
        assert bash.expand("${@:-none}") == ["none"]

    def test_per_element_operations(self, bash):
        assert bash.expand("${@^}") == ["A", "B c", "D"]
        assert bash.expand("${*/b/X}") == ["a X c d"]

    def test_inside_word(self, bash):
        assert bash.expand_word("[$@]") == "[a b c d]"


class TestPositionalSlices:
    """Test ${@:offset:length}."""

    def test_from_offset(self, bash):
        assert bash.expand("${@:2}") == ["b c", "d"]

    def test_zero_includes_script_name(self, bash):
        assert bash.expand("${@:0:1}") == ["myscript"]

    def test_negative_offset(self, bash):
        assert bash.expand("${@: -1}") == ["d"]
        assert bash.expand("${@: -10}") == []

    def test_star_slice(self, bash):
        assert bash.expand("${*:1:2}") == ["a b c"]

    def test_negative_length(self, bash):
        with pytest.raises(BadSubstitutionError):
            bash.expand("${@:1:-1}")


class TestFunctionFrames:
    """Test positional parameters per function call."""

    def test_function_has_own_positional(self, bash):
        with bash.function_call("f", ["x", "y"]):
            assert bash.expand("$#") == ["2"]
            assert bash.expand("$1") == ["x"]
            assert bash.expand("$0") == ["myscript"]
        assert bash.expand("$1") == ["a"]
        assert bash.expand("$#") == ["3"]

    def test_set_in_function_is_local_to_frame(self, bash):
        with bash.function_call("f", ["x"]):
            bash.set(["--", "p", "q"])
            assert bash.expand("$@") == ["p", "q"]
        assert bash.expand("$@") == ["a", "b c", "d"]


class TestSetPositional:
    """Test replacing positional parameters with set."""

    def test_set_dashdash(self, bash):
        bash.set(["--", "p", "q"])
        assert bash.expand("$@") == ["p", "q"]

    def test_set_dashdash_clears(self, bash):
        bash.set(["--"])
        assert bash.expand("$#") == ["0"]

    def test_set_with_plain_args(self, bash):
        bash.set(["one", "two"])
        assert bash.expand("$2") == ["two"]
