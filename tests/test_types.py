"""Tests for entries, boxed values and type compatibility."""

from typing import Any, Optional, Protocol, TypedDict

import pytest

from typed_hash.types import (
    Boxed,
    ConversionError,
    Entry,
    MatchPolicy,
    Ref,
    convert,
    default_value,
    is_assignable,
    is_identifier,
    validate_identifier,
)


class TestIdentifier:
    """Tests for key validation."""

    @pytest.mark.parametrize("name", ["x", "_x", "snake_case", "CamelCase", "a1", "_"])
    def test_valid(self, name):
        assert is_identifier(name)
        assert validate_identifier(name) == name

    @pytest.mark.parametrize("name", ["", "1x", "x-y", "x y", "é", "x.y"])
    def test_invalid(self, name):
        assert not is_identifier(name)
        with pytest.raises(ValueError):
            validate_identifier(name)

    def test_non_string_key(self):
        """Test that a non-string key is a type error."""
        with pytest.raises(TypeError):
            validate_identifier(5)


class TestEntry:
    """Tests for Entry construction."""

    def test_value_and_type(self):
        entry = Entry("x", lambda: 1)
        assert entry.key == "x"
        assert entry.value == 1
        assert entry.value_type is int

    def test_of_wraps_plain_value(self):
        entry = Entry.of("name", "Jesse")
        assert entry.value == "Jesse"
        assert entry.value_type is str

    def test_producer_evaluated_once(self):
        """Test that the producer runs exactly once, at definition."""
        calls = []

        def producer():
            calls.append(1)
            return 42

        entry = Entry("answer", producer)
        assert entry.value == 42
        assert entry.value == 42
        assert len(calls) == 1

    def test_invalid_key(self):
        with pytest.raises(ValueError):
            Entry("1x", lambda: 1)

    def test_non_callable_producer(self):
        with pytest.raises(TypeError, match="zero-argument callable"):
            Entry("x", 1)

    def test_producer_with_required_argument(self):
        with pytest.raises(TypeError, match="must take no arguments"):
            Entry("x", lambda a: a)

    def test_producer_with_default_argument(self):
        """Test that parameters with defaults are allowed."""
        assert Entry("x", lambda a=3: a).value == 3

    def test_producer_returning_none(self):
        with pytest.raises(TypeError, match="returned no value"):
            Entry("x", lambda: None)

    def test_frozen(self):
        entry = Entry("x", lambda: 1)
        with pytest.raises(AttributeError):
            entry.key = "y"

    def test_equality_includes_type(self):
        """Test that 1 and True are different entries despite 1 == True."""
        assert Entry.of("x", 1) == Entry("x", lambda: 1)
        assert Entry.of("x", 1) != Entry.of("x", True)
        assert Entry.of("x", 1) != Entry.of("y", 1)

    def test_matches(self):
        entry = Entry.of("x", 5)
        assert entry.matches("x")
        assert entry.matches("x", int)
        assert entry.matches("x", float)
        assert not entry.matches("x", str)
        assert not entry.matches("y", int)


class Meta(TypedDict):
    name: str


class Named(Protocol):
    name: str


class TestIsAssignable:
    """Tests for type compatibility."""

    def test_boxed_and_any_accept_everything(self):
        assert is_assignable(Boxed, str)
        assert is_assignable(Any, int)
        assert is_assignable(object, list)

    def test_subclass(self):
        assert is_assignable(int, int)
        assert is_assignable(int, bool)
        assert not is_assignable(bool, int)
        assert not is_assignable(str, int)

    def test_numeric_promotion(self):
        assert is_assignable(float, int)
        assert is_assignable(complex, float)
        assert not is_assignable(int, float)

    def test_bool_promotes_like_int(self):
        """bool widens to float and complex through its int base."""
        assert is_assignable(float, bool)
        assert is_assignable(complex, bool)
        assert not is_assignable(str, bool)

    def test_unions(self):
        assert is_assignable(Optional[int], int)
        assert is_assignable(int | str, str)
        assert not is_assignable(Optional[str], int)

    def test_generics_check_origin(self):
        assert is_assignable(list[int], list)
        assert is_assignable(dict[str, int], dict)
        assert not is_assignable(list[int], tuple)

    def test_non_type_target(self):
        assert not is_assignable("int", int)

    def test_types_without_class_checks(self):
        """TypedDict and plain Protocol targets accept nothing instead of raising."""
        assert not is_assignable(Meta, dict)
        assert not is_assignable(Named, str)
        assert not is_assignable(Optional[Meta], dict)


class TestConvert:
    """Tests for value conversion."""

    def test_passthrough(self):
        assert convert("a", str) == "a"

    def test_to_string(self):
        assert convert(1, str) == "1"
        assert convert(2.5, str) == "2.5"

    def test_to_int(self):
        assert convert("10", int) == 10
        assert convert(2.0, int) == 2

    def test_int_to_float(self):
        result = convert(1, float)
        assert result == 1.0
        assert isinstance(result, float)

    def test_to_bool(self):
        assert convert("true", bool) is True
        assert convert("False", bool) is False
        assert convert(1, bool) is True

    def test_to_boxed(self):
        assert convert(1, Boxed) == Boxed(1)

    def test_unboxes_before_converting(self):
        assert convert(Boxed(3), str) == "3"

    def test_failures(self):
        with pytest.raises(ConversionError):
            convert("ten", int)
        with pytest.raises(ConversionError):
            convert(1.5, int)
        with pytest.raises(ConversionError):
            convert("yes", bool)
        with pytest.raises(ConversionError):
            convert(5, bool)

    def test_error_carries_details(self):
        with pytest.raises(ConversionError) as excinfo:
            convert("ten", int)
        assert excinfo.value.value == "ten"
        assert excinfo.value.target is int
        assert isinstance(excinfo.value, ValueError)

    def test_union_target(self):
        assert convert(3, Optional[int]) == 3
        assert convert("4", Optional[int]) == 4

    def test_types_without_instance_checks(self):
        """Targets that reject isinstance() fail as a conversion error."""
        with pytest.raises(ConversionError, match="instance checks"):
            convert({"name": "a"}, Meta)
        with pytest.raises(ConversionError):
            convert("a", Named)


class TestDefaultValue:
    """Tests for zero values."""

    def test_builtin_zero_values(self):
        assert default_value(int) == 0
        assert default_value(str) == ""
        assert default_value(bool) is False
        assert default_value(float) == 0.0

    def test_boxed(self):
        assert default_value(Boxed) is Boxed.EMPTY

    def test_optional(self):
        assert default_value(Optional[int]) is None
        assert default_value(Any) is None

    def test_generic(self):
        assert default_value(list[int]) == []

    def test_not_constructible(self):
        class NeedsArgs:
            def __init__(self, value):
                self.value = value

        assert default_value(NeedsArgs) is None


class TestBoxed:
    """Tests for the type-erased wrapper."""

    def test_equality(self):
        assert Boxed(1) == Boxed(1)
        assert Boxed(1) == 1
        assert Boxed(1) != Boxed(2)
        assert Boxed("a") != "b"

    def test_empty(self):
        assert Boxed() == Boxed.EMPTY
        assert not Boxed()
        assert not Boxed.EMPTY.has_value
        assert Boxed.EMPTY != Boxed(0)
        assert Boxed.EMPTY.type_tag is None

    def test_falsy_value_is_present(self):
        assert Boxed(0)
        assert Boxed(0).has_value

    def test_type_tag(self):
        assert Boxed(1).type_tag is int
        assert Boxed("x").type_tag is str

    def test_try_get(self):
        assert Boxed(1).try_get(int) == 1
        assert Boxed(1).try_get(str) is None
        assert Boxed.EMPTY.try_get(int) is None

    def test_get(self):
        assert Boxed(1).get() == 1
        assert Boxed(1).get(str) == "1"
        with pytest.raises(ValueError):
            Boxed().get()
        with pytest.raises(ConversionError):
            Boxed("x").get(int)

    def test_no_double_boxing(self):
        assert Boxed(Boxed(5)).get() == 5

    def test_hashable(self):
        assert len({Boxed(1), Boxed(1), Boxed(2)}) == 2

    def test_repr(self):
        assert repr(Boxed(1)) == "Boxed(1)"
        assert repr(Boxed()) == "Boxed()"


class TestRef:
    """Tests for typed destinations."""

    def test_starts_at_zero_value(self):
        assert Ref(int).value == 0
        assert Ref(str).value == ""
        assert Ref().value == Boxed.EMPTY

    def test_explicit_initial_value(self):
        assert Ref(int, 42).value == 42


def test_match_policy_values():
    assert MatchPolicy("first") is MatchPolicy.FIRST
    assert MatchPolicy("last") is MatchPolicy.LAST
