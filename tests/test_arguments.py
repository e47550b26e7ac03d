"""Tests for argument lists."""

import pytest

from mocksmith import Arguments, UndefinedArgument


class TestIndexing:
    """Positive and negative indices address the argument list."""

    def test_positive_indices(self) -> None:
        arguments = Arguments(["a", "b", "c"])
        assert [arguments.get(i) for i in range(3)] == ["a", "b", "c"]

    def test_negative_indices_count_from_the_end(self) -> None:
        arguments = Arguments(["a", "b", "c"])
        assert arguments.get(-1) == "c"
        assert arguments.get(-3) == "a"

    def test_out_of_range_index_fails(self) -> None:
        arguments = Arguments(["a", "b", "c"])
        with pytest.raises(UndefinedArgument) as excinfo:
            arguments.get(3)
        assert excinfo.value.index == 3
        with pytest.raises(UndefinedArgument):
            arguments.get(-4)

    def test_empty_list_has_no_index(self) -> None:
        """Even index 0 is undefined when there are no arguments."""
        arguments = Arguments()
        for index in (0, -1, 1, None):
            assert not arguments.has(index)
            with pytest.raises(UndefinedArgument):
                arguments.get(index)

    def test_no_index_addresses_the_first_argument(self) -> None:
        arguments = Arguments(["a", "b"])
        assert arguments.has()
        assert arguments.get() == "a"

    def test_undefined_argument_is_an_index_error(self) -> None:
        with pytest.raises(IndexError):
            Arguments([1])[1]


class TestMutation:
    """Values may be replaced but the shape never changes."""

    def test_set_replaces_a_value(self) -> None:
        arguments = Arguments(["a", "b"])
        arguments.set("z", -1)
        assert arguments.all() == ("a", "z")

    def test_set_without_index_replaces_the_first_value(self) -> None:
        arguments = Arguments(["a", "b"])
        arguments.set("z")
        assert arguments.all() == ("z", "b")

    def test_set_out_of_range_fails(self) -> None:
        arguments = Arguments(["a"])
        with pytest.raises(UndefinedArgument):
            arguments.set("z", 1)
        assert len(arguments) == 1


class TestSequenceProtocol:
    def test_slicing_returns_a_tuple(self) -> None:
        assert Arguments([1, 2, 3])[1:] == (2, 3)

    def test_iteration_and_length(self) -> None:
        arguments = Arguments([1, 2])
        assert list(arguments) == [1, 2]
        assert len(arguments) == 2

    def test_keywords_are_read_only(self) -> None:
        arguments = Arguments([1], {"flag": True})
        assert arguments.keywords == {"flag": True}
        with pytest.raises(TypeError):
            arguments.keywords["flag"] = False  # type: ignore[index]

    def test_equality(self) -> None:
        assert Arguments([1], {"a": 2}) == Arguments([1], {"a": 2})
        assert Arguments([1]) != Arguments([1], {"a": 2})

    def test_adapt_reuses_argument_lists(self) -> None:
        arguments = Arguments([1])
        assert Arguments.adapt(arguments) is arguments
        assert Arguments.adapt([1, 2]) == Arguments([1, 2])
        assert Arguments.adapt(None) == Arguments()
