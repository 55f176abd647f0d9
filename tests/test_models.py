import pytest
from pydantic import ValidationError

from backoffice.models import Interaction, InteractionOutcome, Loan, LoanStatus
from backoffice.utils.formatting import (
    format_api_date, format_currency, format_date, format_phone, initials, parse_api_date,
)

from conftest import interaction_json, loan_json


def test_ids_are_strings():
    loan = Loan.model_validate(loan_json(7))
    assert loan.id == "7"
    assert loan.customer == "3"


def test_outcome_spellings_are_normalized():
    assert InteractionOutcome("payment promised") == InteractionOutcome.PAYMENT_PROMISED
    assert InteractionOutcome("Payment-Promised") == InteractionOutcome.PAYMENT_PROMISED
    interaction = Interaction.model_validate(interaction_json(outcome="no answer"))
    assert interaction.outcome == InteractionOutcome.NO_ANSWER
    assert interaction.is_completed


def test_unknown_status_is_rejected():
    with pytest.raises(ValidationError):
        Loan.model_validate(loan_json(status="FROZEN"))


def test_enum_labels():
    assert LoanStatus.WRITTEN_OFF.label == "Written Off"
    assert ("PAID", "Paid") in LoanStatus.choices()


def test_api_dates_keep_calendar_day():
    assert str(parse_api_date("2024-01-31T23:30:00Z")) == "2024-01-31"
    assert format_api_date("2024-01-31") == "2024-01-31"
    assert format_api_date(None) is None


def test_display_formats():
    assert format_date("2024-01-31") == "Jan 31, 2024"
    assert format_date(None) == "-"
    assert format_currency(1234.5) == "$1,234.50"
    assert format_currency(-10) == "-$10.00"
    assert format_phone("2125551234") == "(212) 555-1234"
    assert initials("Jane Doe") == "JD"
    assert initials("") == ""
