"""Tests for the structured log formatter."""

import json
import logging

import pytest

from cafm.shared.infrastructure.logging import CafmJsonFormatter, correlation_id_var, mask_email


def _record(message: str, **fields) -> logging.LogRecord:
    record = logging.LogRecord("cafm.tests", logging.INFO, __file__, 1, message, None, None)
    for key, value in fields.items():
        setattr(record, key, value)
    return record


@pytest.fixture
def formatter():
    return CafmJsonFormatter("%(name)s %(levelname)s %(message)s", service="cafm-test", environment="staging")


def test_service_metadata_is_stamped(formatter):
    payload = json.loads(formatter.format(_record("Ticket created", ticket_id="t-1")))

    assert payload["message"] == "Ticket created"
    assert payload["ticket_id"] == "t-1"
    assert payload["service"] == "cafm-test"
    assert payload["environment"] == "staging"
    assert payload["level"] == "INFO"
    assert "timestamp" in payload


def test_sensitive_fields_are_masked(formatter):
    payload = json.loads(formatter.format(_record(
        "Technician registered",
        email="pat.plumber@example.com",
        db_password="hunter2",
    )))

    assert payload["email"] == "p***@example.com"
    assert payload["db_password"] == "***REDACTED***"


def test_correlation_id_comes_from_request_context(formatter):
    token = correlation_id_var.set("req-42")
    try:
        payload = json.loads(formatter.format(_record("Ticket assigned")))
    finally:
        correlation_id_var.reset(token)

    assert payload["correlation_id"] == "req-42"
    assert "correlation_id" not in json.loads(formatter.format(_record("Outside a request")))


def test_mask_email_without_domain():
    assert mask_email("not-an-email") == "***"
