# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""Tests for deep structural equality."""

import pytest

from llmbench.validation.compare import deep_equal


class TestScalars:
    @pytest.mark.parametrize("expected, actual", [
        (5, 5.0),
        (0.5, 0.5),
        ("abc", "abc"),
        (None, None),
        (float("nan"), float("nan")),
        (True, True),
    ])
    def test_equal(self, expected: object, actual: object) -> None:
        assert deep_equal(expected, actual)

    @pytest.mark.parametrize("expected, actual", [
        (True, 1),
        (0, False),
        ("1", 1),
        (None, 0),
        (None, ""),
        (1.0, 1.5),
        (float("nan"), 0.0),
    ])
    def test_not_equal(self, expected: object, actual: object) -> None:
        assert not deep_equal(expected, actual)


class TestContainers:
    def test_sequence_order_matters(self) -> None:
        assert deep_equal([1, 2, 3], [1, 2, 3])
        assert not deep_equal([1, 2, 3], [3, 2, 1])

    def test_sequence_length_matters(self) -> None:
        assert not deep_equal([1, 2], [1, 2, 3])

    def test_tuple_and_list_agree(self) -> None:
        assert deep_equal([1, [2, 3]], (1, (2, 3)))

    def test_mapping_key_order_is_irrelevant(self) -> None:
        assert deep_equal({"a": 1, "b": [1, 2]}, {"b": [1, 2], "a": 1})

    def test_mapping_key_sets_must_match(self) -> None:
        assert not deep_equal({"a": 1}, {"a": 1, "b": None})

    def test_nested_bool_vs_int(self) -> None:
        assert not deep_equal({"ok": [True]}, {"ok": [1]})

    def test_string_is_not_a_sequence_of_chars(self) -> None:
        assert not deep_equal(["a", "b"], "ab")

    def test_mapping_vs_sequence(self) -> None:
        assert not deep_equal({}, [])
