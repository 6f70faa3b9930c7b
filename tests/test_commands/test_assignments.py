"""Tests for the storage builtins: declare, local, unset, readonly, export, set."""

import pytest

from just_expand import Engine, ReadOnlyError, UnboundParameterError


class TestDeclare:
    """Test the declare builtin."""

    def test_plain_assignment(self):
        bash = Engine()
        result = bash.declare(["x=1"])
        assert result.exit_code == 0
        assert bash.get("x") == "1"

    def test_print_scalar(self):
        bash = Engine()
        bash.declare(["x=1"])
        result = bash.declare(["-p", "x"])
        assert result.stdout == 'declare -- x="1"\n'

    def test_print_unset_declared(self):
        bash = Engine()
        bash.declare(["x"])
        assert bash.declare(["-p", "x"]).stdout == "declare -- x\n"

    def test_print_quotes_special_characters(self):
        bash = Engine()
        bash.assign("x", 'say "$hi"')
        assert bash.declare(["-p", "x"]).stdout == 'declare -- x="say \\"\\$hi\\""\n'

    def test_indexed_array(self):
        bash = Engine()
        bash.declare(["-a", "arr=(a b)"])
        assert bash.declare(["-p", "arr"]).stdout == 'declare -a arr=([0]="a" [1]="b")\n'

    def test_associative_array(self):
        bash = Engine()
        bash.declare(["-A", "m=([k]=v)"])
        assert bash.declare(["-p", "m"]).stdout == 'declare -A m=([k]="v")\n'

    def test_integer(self):
        bash = Engine()
        bash.declare(["-i", "n=3*4"])
        assert bash.get("n") == "12"
        assert bash.declare(["-p", "n"]).stdout == 'declare -i n="12"\n'

    def test_readonly(self):
        bash = Engine()
        bash.declare(["-r", "r=1"])
        with pytest.raises(ReadOnlyError):
            bash.assign("r", "2")
        result = bash.declare(["r=3"])
        assert result.exit_code == 1
        assert result.stderr == "bash: r: readonly variable\n"
        assert bash.get("r") == "1"

    def test_a_and_A_together(self):
        bash = Engine()
        result = bash.declare(["-aA", "x"])
        assert result.exit_code == 1
        assert result.stderr == "bash: declare: cannot use -a and -A together\n"

    def test_invalid_identifier(self):
        bash = Engine()
        result = bash.declare(["1x=2"])
        assert result.exit_code == 1
        assert result.stderr == "bash: declare: `1x=2': not a valid identifier\n"

    def test_lone_underscore_rejected(self):
        assert Engine().declare(["_=1"]).exit_code == 1

    def test_invalid_option(self):
        result = Engine().declare(["-z", "x"])
        assert result.exit_code == 2
        assert result.stderr == "bash: declare: -z: invalid option\n"

    def test_indexed_to_associative_rejected(self):
        bash = Engine()
        bash.declare(["-a", "arr"])
        result = bash.declare(["-A", "arr"])
        assert result.exit_code == 1
        assert "cannot convert indexed to associative array" in result.stderr

    def test_errors_do_not_stop_other_names(self):
        bash = Engine()
        result = bash.declare(["1bad=x", "good=y"])
        assert result.exit_code == 1
        assert bash.get("good") == "y"

    def test_print_missing(self):
        result = Engine().declare(["-p", "missing"])
        assert result.exit_code == 1
        assert result.stderr == "bash: declare: missing: not found\n"

    def test_print_all(self):
        bash = Engine()
        bash.declare(["b=2"])
        bash.declare(["a=1"])
        assert bash.declare([]).stdout == 'declare -- a="1"\ndeclare -- b="2"\n'

    def test_append(self):
        bash = Engine()
        bash.declare(["s=ab"])
        bash.declare(["s+=cd"])
        assert bash.get("s") == "abcd"

    def test_remove_export(self):
        bash = Engine()
        bash.export(["X=1"])
        bash.declare(["+x", "X"])
        assert "X" not in bash.exported_env()

    def test_typeset_alias(self):
        bash = Engine()
        bash.run_builtin("typeset", ["t=1"])
        assert bash.get("t") == "1"


class TestDeclareScope:
    """Test declare inside functions."""

    def test_declare_in_function_is_local(self):
        bash = Engine()
        with bash.function_call("f"):
            bash.declare(["L=1"])
            assert bash.get("L") == "1"
        assert bash.get("L") is None

    def test_global_flag(self):
        bash = Engine()
        with bash.function_call("f"):
            bash.declare(["-g", "G=1"])
        assert bash.get("G") == "1"

    def test_global_flag_writes_past_local(self):
        bash = Engine()
        bash.assign("v", "outer")
        with bash.function_call("f"):
            bash.local(["v=inner"])
            bash.declare(["-g", "v=global"])
            assert bash.get("v") == "inner"
        assert bash.get("v") == "global"


class TestDeclareNameref:
    """Test declare -n."""

    def test_reference_writes_through(self):
        bash = Engine()
        bash.declare(["-n", "ref=target"])
        bash.assign("ref", "v")
        assert bash.get("target") == "v"
        assert bash.declare(["-p", "ref"]).stdout == 'declare -n ref="target"\n'

    def test_drop_reference(self):
        bash = Engine()
        bash.assign("target", "v")
        bash.declare(["-n", "ref=target"])
        bash.declare(["+n", "ref"])
        assert bash.get("ref") == "target"
        assert bash.get("target") == "v"

    def test_reference_cannot_be_array(self):
        result = Engine().declare(["-na", "x"])
        assert result.exit_code == 1
        assert result.stderr == "bash: x: reference variable cannot be an array\n"

    def test_self_reference(self):
        result = Engine().declare(["-n", "x=x"])
        assert result.exit_code == 1
        assert "circular name reference" in result.stderr

    def test_attributes_apply_to_target(self):
        bash = Engine()
        bash.assign("target", "v")
        bash.declare(["-n", "ref=target"])
        bash.declare(["-x", "ref"])
        assert bash.exported_env() == {"target": "v"}


class TestLocal:
    """Test the local builtin."""

    def test_outside_function(self):
        result = Engine().local(["x=1"])
        assert result.exit_code == 1
        assert result.stderr == "bash: local: can only be used in a function\n"

    def test_local_shadows(self):
        bash = Engine()
        bash.assign("x", "outer")
        with bash.function_call("f"):
            bash.local(["x=inner"])
            assert bash.get("x") == "inner"
        assert bash.get("x") == "outer"

    def test_local_without_value_is_unset(self):
        bash = Engine()
        bash.assign("x", "outer")
        with bash.function_call("f"):
            bash.local(["x"])
            assert bash.get("x") is None
            assert bash.expand("${x-unset}") == ["unset"]

    def test_local_inherit(self):
        bash = Engine()
        bash.assign("x", "outer")
        with bash.function_call("f"):
            bash.local(["-I", "x"])
            assert bash.get("x") == "outer"
            bash.assign("x", "changed")
        assert bash.get("x") == "outer"

    def test_dynamic_scope(self):
        bash = Engine()
        with bash.function_call("outer"):
            bash.local(["v=1"])
            with bash.function_call("inner"):
                assert bash.get("v") == "1"
                bash.assign("v", "2")
            assert bash.get("v") == "2"
        assert bash.get("v") is None

    def test_frame_restored_after_error(self):
        bash = Engine()
        with pytest.raises(UnboundParameterError):
            with bash.function_call("f"):
                bash.local(["t=1"])
                bash.expand("${nope?boom}")
        assert bash.store.depth == 0
        assert bash.get("t") is None

    def test_local_array(self):
        bash = Engine()
        with bash.function_call("f"):
            bash.local(["-a", "arr=(1 2)"])
            assert bash.expand("${arr[@]}") == ["1", "2"]
        assert bash.expand("${arr[@]}") == []


class TestUnset:
    """Test the unset builtin."""

    def test_unset_variable(self):
        bash = Engine()
        bash.assign("x", "1")
        assert bash.unset(["x"]).exit_code == 0
        assert bash.get("x") is None

    def test_unset_missing_is_fine(self):
        assert Engine().unset(["nothing"]).exit_code == 0

    def test_unset_readonly(self):
        bash = Engine()
        bash.readonly(["r=1"])
        result = bash.unset(["r"])
        assert result.exit_code == 1
        assert result.stderr == "bash: unset: r: cannot unset: readonly variable\n"
        assert bash.get("r") == "1"

    def test_unset_reference_removes_target(self):
        bash = Engine()
        bash.assign("target", "t")
        bash.declare(["-n", "p=target"])
        bash.unset(["p"])
        assert bash.store.lookup("p") is None
        assert bash.store.lookup("target") is None

    def test_unset_n_keeps_target(self):
        bash = Engine()
        bash.assign("target", "t")
        bash.declare(["-n", "p=target"])
        bash.unset(["-n", "p"])
        assert bash.store.lookup("p") is None
        assert bash.get("target") == "t"

    def test_invalid_identifier(self):
        result = Engine().unset(["1a"])
        assert result.exit_code == 1
        assert result.stderr == "bash: unset: `1a': not a valid identifier\n"

    def test_invalid_option(self):
        assert Engine().unset(["-z", "x"]).exit_code == 2

    def test_unset_local_reveals_outer(self):
        bash = Engine()
        bash.assign("x", "outer")
        with bash.function_call("f"):
            bash.local(["x=inner"])
            bash.unset(["x"])
            assert bash.get("x") == "outer"


class TestReadonly:
    """Test the readonly builtin."""

    def test_readonly_assignment(self):
        bash = Engine()
        bash.readonly(["R=5"])
        assert bash.get("R") == "5"
        with pytest.raises(ReadOnlyError):
            bash.assign("R", "6")

    def test_listing(self):
        bash = Engine()
        bash.readonly(["R=5"])
        bash.assign("other", "x")
        assert bash.readonly([]).stdout == 'declare -r R="5"\n'
        assert bash.readonly(["-p"]).stdout == 'declare -r R="5"\n'

    def test_readonly_in_function_marks_global(self):
        bash = Engine()
        bash.assign("g", "1")
        with bash.function_call("f"):
            bash.readonly(["g"])
        with pytest.raises(ReadOnlyError):
            bash.assign("g", "2")

    def test_readonly_array(self):
        bash = Engine()
        bash.readonly(["-a", "arr=(1 2)"])
        assert bash.expand("${arr@a}") == ["ar"]
        with pytest.raises(ReadOnlyError):
            bash.assign("arr[0]", "x")


class TestExport:
    """Test the export builtin."""

    def test_initial_env_is_exported(self):
        bash = Engine(env={"HOME": "/h"})
        assert bash.exported_env() == {"HOME": "/h"}
        assert bash.get("HOME") == "/h"

    def test_export_assignment(self):
        bash = Engine()
        bash.assign("local_only", "1")
        bash.export(["A=1"])
        assert bash.exported_env() == {"A": "1"}

    def test_export_existing(self):
        bash = Engine()
        bash.assign("B", "2")
        bash.export(["B"])
        assert bash.exported_env() == {"B": "2"}

    def test_export_n(self):
        bash = Engine()
        bash.export(["A=1"])
        bash.export(["-n", "A"])
        assert bash.exported_env() == {}
        assert bash.get("A") == "1"

    def test_export_p(self):
        bash = Engine()
        bash.export(["A=1"])
        assert bash.export(["-p"]).stdout == 'declare -x A="1"\n'

    def test_export_in_function_marks_global(self):
        bash = Engine()
        bash.assign("g", "1")
        with bash.function_call("f"):
            bash.export(["g"])
        assert bash.exported_env() == {"g": "1"}


class TestSetBuiltin:
    """Test the set builtin."""

    def test_nounset_flags(self):
        bash = Engine()
        bash.set(["-u"])
        assert bash.state.options.nounset
        bash.set(["+u"])
        assert not bash.state.options.nounset

    def test_long_option(self):
        bash = Engine()
        bash.set(["-o", "nounset"])
        assert bash.state.options.nounset
        bash.set(["+o", "nounset"])
        assert not bash.state.options.nounset

    def test_invalid_option(self):
        result = Engine().set(["-e"])
        assert result.exit_code == 2
        assert result.stderr == "bash: set: -e: invalid option\n"

    def test_invalid_long_option(self):
        result = Engine().set(["-o", "pipefail"])
        assert result.exit_code == 1

    def test_list_variables(self):
        bash = Engine()
        bash.assign("x", "a b")
        bash.assign("y", "plain")
        assert bash.set([]).stdout == "x='a b'\ny=plain\n"

    def test_list_arrays(self):
        bash = Engine()
        bash.assign("arr", "(a 'b c')")
        assert bash.set([]).stdout == "arr=([0]=a [1]='b c')\n"
