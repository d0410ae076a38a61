"""Tests for relkit.core.result module."""

import pytest

from relkit.core.result import Err, Ok, Result


def test_repr() -> None:
    assert repr(Ok("3.3.0")) == "Ok('3.3.0')"
    assert repr(Err("boom")) == "Err('boom')"


def test_equality_and_immutability() -> None:
    assert Ok(1) == Ok(1)
    assert Ok(1) != Err(1)
    with pytest.raises(AttributeError):
        Ok(1).value = 2  # type: ignore[misc]


def test_match() -> None:
    def describe(result: Result[int, str]) -> str:
        match result:
            case Ok(value):
                return f"ok {value}"
            case Err(error):
                return f"err {error}"

    assert describe(Ok(3)) == "ok 3"
    assert describe(Err("bad")) == "err bad"


def test_isinstance_narrowing() -> None:
    result: Result[int, str] = Err("bad")
    assert isinstance(result, Err)
    assert result.error == "bad"
