# src/controller/messages.py — v1
"""User-facing wording for batch results.

Returns (message, severity) pairs; the controller pushes them on its
notification channel. Every partial-failure message contains "<n> failed".
"""

from __future__ import annotations

from collections.abc import Sequence

from bulkops.batch.models import Outcome, Summary
from bulkops.notify.channel import Severity
from bulkops.operations.registry import (
    DELETE,
    ERR_NOT_FOUND,
    FIND_EMAIL,
    GENERATE,
    is_credit_error,
)

ALL_HAVE_EMAILS = "All selected affiliates already have emails"
LOAD_FAILED = "Failed to load affiliates. Please try again."


def plural(count: int, singular: str, plural_form: str | None = None) -> str:
    """'1 email', '3 emails'."""
    word = singular if count == 1 else (plural_form or f"{singular}s")
    return f"{count} {word}"


def _severity(summary: Summary) -> Severity:
    if summary.failed == 0:
        return "success"
    if summary.succeeded == 0:
        return "error"
    return "warning"


def cancelled_message(summary: Summary, total: int) -> tuple[str, Severity]:
    text = f"Cancelled after {summary.attempted} of {total}"
    if summary.failed:
        text += f". {summary.failed} failed"
    return text, "info"


def delete_message(summary: Summary, total: int) -> tuple[str, Severity]:
    if summary.failed == 0:
        return f"Deleted {plural(summary.succeeded, 'affiliate')} from pipeline", "success"
    if summary.succeeded == 0:
        return (
            f"Failed to delete {plural(total, 'affiliate')}. {summary.failed} failed. Please try again.",
            "error",
        )
    return (
        f"Deleted {summary.succeeded} of {plural(total, 'affiliate')}. {summary.failed} failed.",
        "warning",
    )


def generate_message(summary: Summary, total: int) -> tuple[str, Severity]:
    if summary.failed == 0:
        return f"{plural(summary.succeeded, 'email')} generated!", "success"
    return (
        f"Generated {summary.succeeded} of {plural(total, 'message')}. "
        f"{summary.failed} failed — click Retry to try again.",
        _severity(summary),
    )


def find_email_message(
    summary: Summary, outcomes: Sequence[Outcome],
) -> tuple[str, Severity]:
    not_found = sum(1 for o in outcomes if o.status == "failure" and o.error == ERR_NOT_FOUND)
    credit = next((o for o in outcomes if is_credit_error(o.error)), None)
    errors = summary.failed - not_found
    found = summary.succeeded

    if credit is not None:
        detail = credit.detail if isinstance(credit.detail, str) else "Ran out of email credits"
        return f"{detail}. Found {found}, {summary.failed} failed.", "warning"
    if summary.failed == 0:
        return f"Found {plural(found, 'email')}!", "success"
    if found > 0:
        return (
            f"Found {found}, not found {not_found}, errors {errors}. {summary.failed} failed.",
            "info",
        )
    if not_found > 0 and errors == 0:
        return f"No emails found for {plural(not_found, 'affiliate')}. {summary.failed} failed.", "warning"
    return f"Email lookup failed for {plural(summary.failed, 'affiliate')}. {summary.failed} failed.", "error"


def summary_message(
    kind: str,
    summary: Summary,
    outcomes: Sequence[Outcome] = (),
    total: int | None = None,
) -> tuple[str, Severity]:
    """Pick the wording for a finished (or cancelled) batch."""
    targeted = summary.attempted if total is None else total
    if summary.cancelled:
        return cancelled_message(summary, targeted)
    if kind == DELETE:
        return delete_message(summary, targeted)
    if kind == GENERATE:
        return generate_message(summary, targeted)
    if kind == FIND_EMAIL:
        return find_email_message(summary, outcomes)
    if summary.failed == 0:
        return f"Processed {plural(summary.succeeded, 'item')}", "success"
    return (
        f"Processed {summary.succeeded} of {plural(targeted, 'item')}. {summary.failed} failed.",
        _severity(summary),
    )


def retry_message(kind: str, outcome: Outcome) -> tuple[str, Severity]:
    """Wording for a single-item retry."""
    if outcome.ok:
        return "Retry succeeded", "success"
    reason = outcome.error or "unknown error"
    return f"Retry failed ({kind}): {reason}", "error"
