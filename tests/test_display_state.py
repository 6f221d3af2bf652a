"""Tests for mapping request statuses to form display states."""

import pytest

from accounting_portal_api.app.schemas.request import DisplayLabels
from accounting_portal_api.app.services.catalog import get_service_type
from accounting_portal_api.app.services.request_service import status_to_display_state


LABELS = DisplayLabels(
    default_text="Submit",
    pending_text="Update",
    rejected_text="Resubmit",
    completed_text="Done",
    processing_text="Working...",
)


@pytest.mark.parametrize(
    "status, label",
    [(None, "Submit"), ("pending", "Update"), ("rejected", "Resubmit")],
)
def test_editable_statuses_enable_the_form(status, label):
    state = status_to_display_state(status, LABELS)
    assert state.action_enabled
    assert state.fields_enabled
    assert state.label == label


@pytest.mark.parametrize("status", ["in-progress", "completed"])
def test_locked_statuses_disable_the_form(status):
    state = status_to_display_state(status, LABELS)
    assert not state.action_enabled
    assert not state.fields_enabled
    assert state.label == "Done"


def test_submitting_shows_processing_label():
    state = status_to_display_state("pending", LABELS, submitting=True)
    assert not state.action_enabled
    assert state.label == "Working..."


def test_default_labels():
    assert status_to_display_state(None).label == "Submit Registration"
    assert status_to_display_state("completed").label == "Already Submitted"
    assert status_to_display_state(None, submitting=True).label == "Processing..."


def test_service_type_labels():
    labels = get_service_type("payment-plan").display_labels
    assert status_to_display_state("rejected", labels).label == "Resubmit Payment Plan"
