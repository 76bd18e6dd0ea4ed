"""Tests for the per-property message aggregator."""

import logging

import pytest

from validatable import MessageAggregator, Severity, ValidationMessage


ERROR = ValidationMessage(severity=Severity.ERROR, text="bad")
OTHER_ERROR = ValidationMessage(severity=Severity.ERROR, text="worse")
WARNING = ValidationMessage(severity=Severity.WARNING, text="careful")


@pytest.fixture
def aggregator():
    return MessageAggregator()


@pytest.fixture
def events(aggregator):
    received = []
    aggregator.on_change(lambda name, old, new: received.append((name, old, new)))
    return received


class TestReads:
    def test_empty(self, aggregator):
        assert aggregator.get_messages("Email") == ()
        assert aggregator.get_all_messages() == {}
        assert aggregator.is_valid()
        assert not aggregator.has_messages()

    def test_warnings_do_not_affect_validity(self, aggregator):
        aggregator.replace("Balance", [WARNING])
        assert aggregator.is_valid()
        assert aggregator.has_messages(Severity.WARNING)
        assert not aggregator.has_messages(Severity.ERROR)
        assert not aggregator.has_errors("Balance")

    def test_errors_make_invalid(self, aggregator):
        aggregator.replace("Email", [ERROR])
        assert not aggregator.is_valid()
        assert aggregator.has_errors("Email")

    def test_get_all_is_a_snapshot(self, aggregator):
        aggregator.replace("Email", [ERROR])
        snapshot = aggregator.get_all_messages()
        aggregator.replace("Email", [])
        assert snapshot == {"Email": (ERROR,)}


class TestReplace:
    def test_replace_notifies_with_old_and_new(self, aggregator, events):
        assert aggregator.replace("Email", [ERROR]) is True
        assert events == [("Email", (), (ERROR,))]

    def test_identical_set_does_not_notify(self, aggregator, events):
        aggregator.replace("Email", [ERROR])
        assert aggregator.replace("Email", [ERROR]) is False
        assert len(events) == 1

    def test_order_matters(self, aggregator, events):
        aggregator.replace("Email", [ERROR, OTHER_ERROR])
        aggregator.replace("Email", [OTHER_ERROR, ERROR])
        assert len(events) == 2

    def test_empty_set_removes_property(self, aggregator, events):
        aggregator.replace("Email", [ERROR])
        aggregator.replace("Email", [])
        assert "Email" not in aggregator.get_all_messages()
        assert events[-1] == ("Email", (ERROR,), ())

    def test_clearing_unknown_property_is_silent(self, aggregator, events):
        assert aggregator.remove_messages("Email") is False
        assert events == []


class TestManualMessages:
    def test_add_appends(self, aggregator):
        aggregator.add_message("Email", ERROR)
        aggregator.add_message("Email", WARNING)
        assert aggregator.get_messages("Email") == (ERROR, WARNING)

    def test_add_ignores_duplicates(self, aggregator, events):
        aggregator.add_message("Email", ERROR)
        assert aggregator.add_message("Email", ERROR) is False
        assert len(events) == 1

    def test_clear(self, aggregator, events):
        aggregator.replace("Email", [ERROR])
        aggregator.replace("Password", [WARNING])
        aggregator.clear()
        assert aggregator.get_all_messages() == {}
        assert {name for name, _, new in events if new == ()} == {"Email", "Password"}


class TestChangeFeed:
    def test_unsubscribe(self, aggregator):
        received = []
        unsubscribe = aggregator.on_change(lambda *args: received.append(args))
        unsubscribe()
        aggregator.replace("Email", [ERROR])
        assert received == []

    def test_listener_failure_is_logged_not_raised(self, aggregator, caplog):
        received = []

        def broken(name, old, new):
            raise RuntimeError("listener exploded")

        aggregator.on_change(broken)
        aggregator.on_change(lambda *args: received.append(args))

        with caplog.at_level(logging.WARNING, logger="validatable.messages"):
            aggregator.replace("Email", [ERROR])

        assert "listener exploded" in caplog.text
        assert len(received) == 1
        assert aggregator.get_messages("Email") == (ERROR,)
