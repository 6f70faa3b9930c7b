"""Tests for the scoped variable store."""

import pytest

from just_expand.interpreter.errors import (
    ExecutionLimitError,
    InvalidAttributeCombinationError,
    InvalidIdentifierError,
    ReadOnlyError,
    ReferenceCycleError,
)
from just_expand.interpreter.types import (
    Attribute,
    IndexedArray,
    Reference,
    VariableStore,
    is_valid_name,
)
from just_expand.types import ExecutionLimits


class TestNames:
    """Test identifier validation."""

    @pytest.mark.parametrize("name", ["a", "_x", "a_1", "ABC"])
    def test_valid(self, name):
        assert is_valid_name(name)

    @pytest.mark.parametrize("name", ["_", "1a", "a-b", "", "a b"])
    def test_invalid(self, name):
        assert not is_valid_name(name)


class TestScopes:
    """Test global and function frames."""

    def test_assign_and_get(self):
        store = VariableStore()
        store.assign("x", "1")
        assert store.get("x") == "1"

    def test_unset_distinct_from_empty(self):
        store = VariableStore()
        store.assign("e", "")
        assert store.get("e") == ""
        assert store.is_set("e")
        assert store.get("nope") is None
        assert not store.is_set("nope")

    def test_local_shadows_and_restores(self):
        store = VariableStore()
        store.assign("x", "global")
        with store.function_scope("f"):
            store.declare("x", scope="local")
            assert store.get("x") is None
            store.assign("x", "inner")
            assert store.get("x") == "inner"
        assert store.get("x") == "global"

    def test_assign_without_local_writes_outer(self):
        store = VariableStore()
        store.assign("x", "1")
        with store.function_scope("f"):
            store.assign("x", "2")
        assert store.get("x") == "2"

    def test_new_name_in_function_goes_global(self):
        store = VariableStore()
        with store.function_scope("f"):
            store.assign("y", "1")
        assert store.get("y") == "1"

    def test_frame_popped_on_error(self):
        store = VariableStore()
        with pytest.raises(RuntimeError):
            with store.function_scope("f"):
                store.declare("t", scope="local")
                raise RuntimeError("boom")
        assert store.depth == 0
        assert store.get("t") is None

    def test_call_depth_limit(self):
        store = VariableStore(limits=ExecutionLimits(max_call_depth=2))
        store.push_frame("a")
        store.push_frame("b")
        with pytest.raises(ExecutionLimitError):
            store.push_frame("c")
        assert store.depth == 2

    def test_global_frame_cannot_be_popped(self):
        store = VariableStore()
        with pytest.raises(RuntimeError):
            store.pop_frame()

    def test_invalid_name_rejected(self):
        store = VariableStore()
        with pytest.raises(InvalidIdentifierError):
            store.assign("1", "x")


class TestPositional:
    """Test per-frame positional parameters."""

    def test_positional_per_frame(self):
        store = VariableStore()
        store.set_positional(["a", "b"])
        with store.function_scope("f", ["x"]):
            assert store.positional == ["x"]
            assert store.get_positional(1) == "x"
            assert store.get_positional(2) is None
        assert store.positional == ["a", "b"]
        assert store.get_positional(1) == "a"

    def test_out_of_range(self):
        store = VariableStore()
        assert store.get_positional(0) is None
        assert store.get_positional(1) is None


class TestReadOnly:
    """Test the readonly attribute."""

    def test_readonly_rejects_writes_and_erase(self):
        store = VariableStore()
        store.assign("x", "1")
        store.declare("x", add=(Attribute.READONLY,))
        with pytest.raises(ReadOnlyError):
            store.assign("x", "2")
        with pytest.raises(ReadOnlyError):
            store.erase("x")
        assert store.get("x") == "1"

    def test_readonly_cannot_be_removed(self):
        store = VariableStore()
        store.declare("x", add=(Attribute.READONLY,))
        with pytest.raises(ReadOnlyError):
            store.declare("x", remove=(Attribute.READONLY,))


class TestReferences:
    """Test nameref resolution."""

    def _store(self):
        store = VariableStore()
        store.assign("target", "t")
        store.set_reference("pointer", "target")
        return store

    def test_read_through(self):
        assert self._store().get("pointer") == "t"

    def test_write_through(self):
        store = self._store()
        store.assign("pointer", "x")
        assert store.get("target") == "x"
        assert store.lookup("pointer").value == Reference("target")

    def test_erase_removes_reference_and_target(self):
        store = self._store()
        assert store.erase("pointer")
        assert store.lookup("pointer") is None
        assert store.lookup("target") is None

    def test_erase_keep_target(self):
        store = self._store()
        store.erase("pointer", keep_target=True)
        assert store.lookup("pointer") is None
        assert store.get("target") == "t"

    def test_chain(self):
        store = self._store()
        store.set_reference("p2", "pointer")
        assert store.get("p2") == "t"
        name, binding = store.resolve("p2")
        assert name == "target"
        assert binding is store.lookup("target")

    def test_cycle_detected(self):
        store = VariableStore()
        store.set_reference("a", "b")
        store.set_reference("b", "a")
        with pytest.raises(ReferenceCycleError):
            store.get("a")
        with pytest.raises(ReferenceCycleError):
            store.erase("a")

    def test_self_reference_rejected(self):
        store = VariableStore()
        with pytest.raises(ReferenceCycleError):
            store.set_reference("r", "r")

    def test_invalid_target_rejected(self):
        store = VariableStore()
        with pytest.raises(InvalidIdentifierError):
            store.set_reference("r", "not valid")

    def test_unbound_reference_takes_first_assignment_as_target(self):
        store = VariableStore()
        store.assign("target", "t")
        store.declare("r", kind=Attribute.REFERENCE)
        store.assign("r", "target")
        assert store.get("r") == "t"

    def test_reference_to_unset_creates_target(self):
        store = VariableStore()
        store.set_reference("r", "newvar")
        store.assign("r", "v")
        assert store.get("newvar") == "v"

    def test_chain_length_limit(self):
        store = VariableStore(limits=ExecutionLimits(max_reference_depth=3))
        store.assign("v0", "end")
        for i in range(1, 5):
            store.set_reference(f"v{i}", f"v{i - 1}")
        with pytest.raises(ExecutionLimitError):
            store.get("v4")


class TestKindConversion:
    """Test container and reference kind changes."""

    def test_scalar_becomes_indexed(self):
        store = VariableStore()
        store.assign("x", "one")
        binding = store.declare("x", kind=Attribute.INDEXED)
        assert binding.value == IndexedArray({0: "one"})
        assert binding.flags == "a"

    def test_indexed_to_associative_rejected(self):
        store = VariableStore()
        store.declare("arr", kind=Attribute.INDEXED)
        with pytest.raises(InvalidAttributeCombinationError):
            store.declare("arr", kind=Attribute.ASSOCIATIVE)

    def test_array_cannot_become_reference(self):
        store = VariableStore()
        store.declare("arr", kind=Attribute.INDEXED)
        with pytest.raises(InvalidAttributeCombinationError):
            store.declare("arr", kind=Attribute.REFERENCE)

    def test_assign_to_array_writes_element_zero(self):
        store = VariableStore()
        store.declare("arr", kind=Attribute.INDEXED)
        store.lookup("arr").value.elements[3] = "three"
        store.assign("arr", "zero")
        assert store.lookup("arr").value.elements == {0: "zero", 3: "three"}
        assert store.get("arr") == "zero"


class TestLocalInherit:
    """Test local -I style inheritance."""

    def test_inherit_value_and_attributes(self):
        store = VariableStore()
        store.assign("x", "outer")
        store.declare("x", add=(Attribute.EXPORTED,))
        with store.function_scope("f"):
            binding = store.declare("x", scope="local", inherit=True)
            assert binding.value == "outer"
            assert Attribute.EXPORTED in binding.attributes
            store.assign("x", "inner")
        assert store.get("x") == "outer"

    def test_inherit_drops_readonly(self):
        store = VariableStore()
        store.assign("x", "outer")
        store.declare("x", add=(Attribute.READONLY,))
        with store.function_scope("f"):
            store.declare("x", scope="local", inherit=True)
            store.assign("x", "inner")
            assert store.get("x") == "inner"
        assert store.get("x") == "outer"


class TestCloneAndExport:
    """Test subshell copies and the exported environment."""

    def test_clone_is_independent(self):
        store = VariableStore()
        store.assign("x", "1")
        store.declare("a", kind=Attribute.INDEXED)
        store.lookup("a").value.elements[0] = "z"
        clone = store.clone()
        clone.assign("x", "2")
        clone.lookup("a").value.elements[0] = "y"
        assert store.get("x") == "1"
        assert store.lookup("a").value.elements[0] == "z"
        assert clone.get("x") == "2"

    def test_exported(self):
        store = VariableStore({"A": "1", "B": "2"})
        store.declare("A", add=(Attribute.EXPORTED,))
        assert store.exported() == {"A": "1"}

    def test_names_skip_unset_bindings(self):
        store = VariableStore()
        store.assign("b", "1")
        store.declare("a")
        assert store.names() == ["b"]
