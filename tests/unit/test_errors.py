"""Tests for bbl error types."""

from __future__ import annotations

from bbl.core.errors import BblError, ErrorList, ValidationError


class TestBblError:
    def test_str_is_message(self):
        assert str(ValidationError("--type is a required flag")) == "--type is a required flag"

    def test_subclasses_share_base(self):
        assert isinstance(ErrorList(), BblError)


class TestErrorList:
    """Tests for ErrorList."""

    def test_message_lists_errors_in_order(self):
        errors = ErrorList([BblError("failed to apply"), "failed to get state"])

        assert str(errors) == (
            "the following errors occurred:\nfailed to apply,\nfailed to get state"
        )
        assert len(errors) == 2

    def test_add_updates_message(self):
        errors = ErrorList(["first"])
        errors.add(ValueError("second"))

        assert errors.errors == ["first", "second"]
        assert str(errors).endswith("first,\nsecond")
