from datetime import date, timedelta

from backoffice.forms.base import validate_field, validate_form
from backoffice.forms.customers import CustomerForm
from backoffice.forms.follow_ups import RescheduleFollowUpForm
from backoffice.forms.interactions import CompleteInteractionForm
from backoffice.forms.loans import ApproveLoanForm, LoanForm, RestructureLoanForm, WriteOffLoanForm
from backoffice.forms.payments import PaymentForm
from backoffice.forms.users import HierarchyForm, UserCreateForm, UserUpdateForm
from backoffice.models import Loan

from conftest import loan_json

CLIENTE = {"first_name": "John", "last_name": "Smith", "primary_phone": "+12125551234"}


def test_customer_required_fields():
    form, errors = validate_form(CustomerForm, {"first_name": "  ", "primary_phone": ""})
    assert form is None
    assert errors["first_name"] == "First name is required"
    assert errors["last_name"] == "Last name is required"
    assert errors["primary_phone"] == "Primary phone is required"


def test_customer_phone_format():
    form, errors = validate_form(CustomerForm, CLIENTE)
    assert errors == {}
    assert form.primary_phone == "+12125551234"

    _, errors = validate_form(CustomerForm, {**CLIENTE, "primary_phone": "12345"})
    assert errors == {"primary_phone": "Invalid phone number format"}

    # Solo dígitos ASCII
    _, errors = validate_form(CustomerForm, {**CLIENTE, "primary_phone": "+١٢١٢٥٥٥١٢٣٤"})
    assert errors == {"primary_phone": "Invalid phone number format"}


def test_customer_optional_email_is_checked_only_when_present():
    _, errors = validate_form(CustomerForm, {**CLIENTE, "email": ""})
    assert errors == {}
    _, errors = validate_form(CustomerForm, {**CLIENTE, "email": "not-an-email"})
    assert errors == {"email": "Invalid email address"}


def test_customer_payload_skips_blank_fields():
    form, _ = validate_form(CustomerForm, {**CLIENTE, "monthly_income": "2500", "city": ""})
    payload = form.to_payload()
    assert payload["monthly_income"] == 2500
    assert "city" not in payload
    assert payload["gender"] == "OTHER"


def test_payment_promise_requires_amount_and_date():
    form, errors = validate_form(CompleteInteractionForm, {"outcome": "PAYMENT_PROMISED"})
    assert form is None
    assert set(errors) == {"payment_promise_amount", "payment_promise_date"}

    form, errors = validate_form(CompleteInteractionForm, {
        "outcome": "PAYMENT_PROMISED",
        "payment_promise_amount": "150.50",
        "payment_promise_date": "2024-02-15",
    })
    assert errors == {}
    assert form.payment_promise_amount == 150.5


def test_completion_notes_are_appended():
    form, _ = validate_form(CompleteInteractionForm, {
        "outcome": "NO_ANSWER",
        "end_time": "2024-01-31T10:15",
        "notes": "Left voicemail",
        "payment_promise_amount": "10",
    })
    payload = form.to_completion_payload("Called about overdue balance")
    assert payload["notes"] == "Called about overdue balance\n\nCompletion Notes: Left voicemail"
    assert payload["outcome"] == "NO_ANSWER"
    assert payload["end_time"] == "2024-01-31T10:15"
    assert "payment_promise_amount" not in payload


def test_payment_date_cannot_be_in_the_future():
    manana = (date.today() + timedelta(days=1)).isoformat()
    _, errors = validate_form(PaymentForm, {"amount": "100", "payment_date": manana, "payment_method": "CASH"})
    assert errors == {"payment_date": "Date cannot be in the future"}


def test_payment_amount_must_be_positive_number():
    hoy = date.today().isoformat()
    _, errors = validate_form(PaymentForm, {"amount": "0", "payment_date": hoy, "payment_method": "CASH"})
    assert errors["amount"] == "Amount must be greater than zero"
    _, errors = validate_form(PaymentForm, {"amount": "abc", "payment_date": hoy, "payment_method": "CASH"})
    assert errors["amount"] == "Enter a valid number"


def test_amounts_must_be_finite():
    hoy = date.today().isoformat()
    for monto in ("nan", "inf", "-inf", "1e400"):
        form, errors = validate_form(PaymentForm, {"amount": monto, "payment_date": hoy, "payment_method": "CASH"})
        assert form is None
        assert errors["amount"] == "Enter a valid number"

    _, errors = validate_form(CustomerForm, {**CLIENTE, "monthly_income": "nan"})
    assert errors == {"monthly_income": "Enter a valid number"}
    _, errors = validate_form(RestructureLoanForm, {"new_maturity_date": "2026-12-31", "new_interest_rate": "inf"})
    assert errors == {"new_interest_rate": "Enter a valid number"}


def test_loan_dates_keep_calendar_day():
    loan = Loan.model_validate(loan_json(application_date="2024-01-31T23:30:00Z"))
    values = LoanForm.initial(loan)
    assert values["application_date"] == "2024-01-31"
    assert values["principal_amount"] == "1000"

    form, errors = validate_form(LoanForm, {**values, "customer": "3"})
    assert errors == {}
    assert form.to_payload()["application_date"] == "2024-01-31"


def test_loan_maturity_before_application():
    _, errors = validate_form(LoanForm, {
        "customer": "3", "principal_amount": "1000", "interest_rate": "10", "term_months": "12",
        "application_date": "2024-01-31", "maturity_date": "2023-12-31",
    })
    assert errors == {"maturity_date": "Maturity date cannot be before the application date"}


def test_approve_disbursement_after_approval():
    _, errors = validate_form(ApproveLoanForm, {"approval_date": "2024-02-10", "disbursement_date": "2024-02-01"})
    assert "disbursement_date" in errors


def test_restructure_requires_new_maturity_date():
    form, errors = validate_form(RestructureLoanForm, {"new_interest_rate": "12", "notes": "Hardship"})
    assert form is None
    assert errors == {"new_maturity_date": "New maturity date is required"}

    form, errors = validate_form(RestructureLoanForm, {"new_maturity_date": "2026-12-31", "new_interest_rate": ""})
    assert errors == {}
    assert form.to_payload() == {"new_maturity_date": "2026-12-31"}


def test_write_off_requires_reason():
    form, errors = validate_form(WriteOffLoanForm, {"reason": "   ", "notes": "Customer unreachable"})
    assert form is None
    assert errors == {"reason": "Please provide a reason for writing off this loan"}


def test_hierarchy_users_must_differ():
    _, errors = validate_form(HierarchyForm, {})
    assert errors == {"manager": "Manager is required", "collection_officer": "Collection officer is required"}

    form, errors = validate_form(HierarchyForm, {"manager": "2", "collection_officer": "2"})
    assert form is None
    assert errors == {"collection_officer": "Manager and collection officer must be different users"}

    form, errors = validate_form(HierarchyForm, {"manager": "2", "collection_officer": "5"})
    assert errors == {}
    assert form.to_payload() == {"manager": "2", "collection_officer": "5"}


def test_reschedule_rejects_past_date_and_bad_time():
    ayer = (date.today() - timedelta(days=1)).isoformat()
    _, errors = validate_form(RescheduleFollowUpForm, {"scheduled_date": ayer, "scheduled_time": "25:00"})
    assert errors["scheduled_date"] == "Date cannot be in the past"
    assert errors["scheduled_time"] == "Invalid time format (HH:MM)"


def test_user_password_required_only_on_create():
    datos = {"username": "agent1", "first_name": "Ana", "last_name": "Lopez",
             "email": "ana@example.com", "role": "CALLING_AGENT"}
    _, errors = validate_form(UserCreateForm, datos)
    assert "password" in errors
    form, errors = validate_form(UserUpdateForm, datos)
    assert errors == {}
    assert "password" not in form.to_payload()


def test_validate_single_field():
    assert validate_field(CustomerForm, {"primary_phone": "12345"}, "primary_phone") == "Invalid phone number format"
    assert validate_field(CustomerForm, {"primary_phone": "+12125551234"}, "primary_phone") is None


def test_validate_field_shows_cross_field_rule_while_other_field_is_invalid():
    datos = {"outcome": "PAYMENT_PROMISED", "end_time": "bad", "payment_promise_date": "2026-12-31"}
    assert validate_field(CompleteInteractionForm, datos, "end_time") == "Enter a valid date and time"
    assert validate_field(CompleteInteractionForm, datos, "payment_promise_amount") == (
        "Payment amount is required when outcome is 'Payment Promised'"
    )
    assert validate_field(CompleteInteractionForm, datos, "payment_promise_date") is None

    prestamo = {"customer": "3", "principal_amount": "abc", "interest_rate": "10", "term_months": "12",
                "application_date": "2024-01-31", "maturity_date": "2023-12-31"}
    assert validate_field(LoanForm, prestamo, "maturity_date") == (
        "Maturity date cannot be before the application date"
    )


def test_validate_field_skips_rules_missing_their_inputs():
    # Sin application_date no hay contra qué comparar
    prestamo = {"principal_amount": "abc", "maturity_date": "2023-12-31"}
    assert validate_field(LoanForm, prestamo, "maturity_date") is None
