"""Unit tests for kernel error hierarchy."""

from __future__ import annotations

import json

import pytest

from mp_eventsource.kernel.errors import (
    BaseError,
    DomainError,
    InvalidIdentifierError,
    ReducerRegistrationError,
    UnknownEventTypeError,
    ValidationError,
)


class TestBaseError:
    def test_message_is_stored(self) -> None:
        err = BaseError("something went wrong")
        assert err.message == "something went wrong"

    def test_default_code(self) -> None:
        assert BaseError("m").code == "base_error"

    def test_custom_code(self) -> None:
        assert BaseError("m", code="custom").code == "custom"

    def test_to_dict_basic(self) -> None:
        err = BaseError("m", code="my_code", detail={"key": "val"})
        assert err.to_dict() == {"code": "my_code", "message": "m", "detail": {"key": "val"}}

    def test_cause_is_chained(self) -> None:
        cause = ValueError("original")
        err = BaseError("wrapper", cause=cause)
        assert err.__cause__ is cause
        assert "original" in err.to_dict()["cause"]

    def test_str_is_json(self) -> None:
        payload = json.loads(str(BaseError("m", code="c")))
        assert payload["code"] == "c"

    def test_repr(self) -> None:
        assert repr(BaseError("m")) == "BaseError(code='base_error', message='m')"


# ---------------------------------------------------------------------------
# Domain errors
# ---------------------------------------------------------------------------


class TestDomainErrors:
    @pytest.mark.parametrize(
        "err",
        [
            InvalidIdentifierError("x"),
            UnknownEventTypeError("e"),
            ReducerRegistrationError(["a"]),
        ],
    )
    def test_all_are_domain_errors(self, err: BaseError) -> None:
        assert isinstance(err, DomainError)

    def test_invalid_identifier_is_validation_error(self) -> None:
        err = InvalidIdentifierError(123)
        assert isinstance(err, ValidationError)
        assert err.identifier == 123
        assert err.code == "invalid_identifier"
        assert err.detail == {"identifier": "123"}

    def test_unknown_event_type_carries_name(self) -> None:
        err = UnknownEventTypeError("person-was-deleted")
        assert err.event_name == "person-was-deleted"
        assert "person-was-deleted" in err.message

    def test_registration_error_sorts_missing(self) -> None:
        err = ReducerRegistrationError({"z", "a", "m"})
        assert err.missing == ("a", "m", "z")
        assert err.detail == {"missing": ["a", "m", "z"]}
        assert err.code == "reducer_registration"
