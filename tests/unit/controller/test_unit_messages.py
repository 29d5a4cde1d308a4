# tests/unit/controller/test_unit_messages.py — v1
"""Tests for controller/messages.py — batch result wording and severities."""

from __future__ import annotations

import pytest

from bulkops.batch.models import Outcome, Summary
from bulkops.controller.messages import (
    cancelled_message,
    find_email_message,
    plural,
    retry_message,
    summary_message,
)


class TestPlural:
    def test_plural(self):
        assert plural(1, "email") == "1 email"
        assert plural(3, "email") == "3 emails"
        assert plural(2, "entry", "entries") == "2 entries"


class TestDeleteWording:
    def test_all_succeeded(self):
        text, severity = summary_message("delete", Summary(succeeded=3))
        assert text == "Deleted 3 affiliates from pipeline"
        assert severity == "success"

    def test_partial(self):
        text, severity = summary_message("delete", Summary(succeeded=2, failed=1), total=3)
        assert text == "Deleted 2 of 3 affiliates. 1 failed."
        assert severity == "warning"

    def test_all_failed(self):
        text, severity = summary_message("delete", Summary(failed=2), total=2)
        assert "2 failed" in text
        assert severity == "error"


class TestGenerateWording:
    def test_all_succeeded(self):
        assert summary_message("generate", Summary(succeeded=1)) == ("1 email generated!", "success")

    def test_partial(self):
        text, severity = summary_message("generate", Summary(succeeded=3, failed=2), total=5)
        assert text == "Generated 3 of 5 messages. 2 failed — click Retry to try again."
        assert severity == "warning"


class TestFindEmailWording:
    def test_all_found(self):
        outcomes = [Outcome(id="a", status="success", detail="x@a.com")]
        assert find_email_message(Summary(succeeded=1), outcomes) == ("Found 1 email!", "success")

    def test_mixed(self):
        outcomes = [
            Outcome(id="a", status="success"),
            Outcome(id="b", status="failure", error="not_found"),
            Outcome(id="c", status="failure", error="lookup_error"),
        ]
        text, severity = find_email_message(Summary(succeeded=1, failed=2), outcomes)
        assert text.startswith("Found 1, not found 1, errors 1")
        assert "2 failed" in text
        assert severity == "info"

    def test_none_found(self):
        outcomes = [Outcome(id="a", status="failure", error="not_found")] * 2
        text, severity = find_email_message(Summary(failed=2), outcomes)
        assert text.startswith("No emails found for 2 affiliates")
        assert severity == "warning"

    def test_only_errors(self):
        outcomes = [Outcome(id="a", status="failure", error="HTTP 500: boom")]
        _, severity = find_email_message(Summary(failed=1), outcomes)
        assert severity == "error"

    def test_credit_message(self):
        outcomes = [
            Outcome(id="a", status="success"),
            Outcome(id="b", status="failure", error="insufficient_credits", detail="Insufficient credits"),
        ]
        text, severity = find_email_message(Summary(succeeded=1, failed=1), outcomes)
        assert text.startswith("Insufficient credits")
        assert "1 failed" in text
        assert severity == "warning"


class TestOtherWording:
    def test_cancelled(self):
        text, severity = summary_message("delete", Summary(succeeded=2, cancelled=True), total=5)
        assert text == "Cancelled after 2 of 5"
        assert severity == "info"

    def test_cancelled_with_failures(self):
        text, _ = cancelled_message(Summary(succeeded=1, failed=1, cancelled=True), 4)
        assert text == "Cancelled after 2 of 4. 1 failed"

    def test_unknown_kind(self):
        text, severity = summary_message("archive", Summary(succeeded=1, failed=1), total=2)
        assert "1 failed" in text
        assert severity == "warning"

    @pytest.mark.parametrize("outcome,severity", [
        (Outcome(id="a", status="success"), "success"),
        (Outcome(id="a", status="failure", error="not_found"), "error"),
    ])
    def test_retry(self, outcome, severity):
        text, sev = retry_message("find_email", outcome)
        assert sev == severity
        if not outcome.ok:
            assert "not_found" in text
