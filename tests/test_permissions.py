import pytest

from backoffice.middleware.authorization import Action, Resource, capabilities, menu_for
from backoffice.models import FollowUp, Interaction, Loan, User

from conftest import follow_up_json, interaction_json, loan_json, user_json


def _user(role, user_id=1, **extra):
    return User.model_validate(user_json(role, user_id, **extra))


def _loan(status):
    return Loan.model_validate(loan_json(status=status))


def test_calling_agent_loans_are_read_only():
    caps = capabilities(_user("CALLING_AGENT"), Resource.LOANS)
    assert caps == {Action.VIEW, Action.VIEW_PAYMENTS}


def test_officer_can_manage_loans():
    caps = capabilities(_user("COLLECTION_OFFICER"), Resource.LOANS)
    assert {Action.CREATE, Action.EDIT, Action.DELETE} <= caps


@pytest.mark.parametrize("status, allowed", [
    ("ACTIVE", True),
    ("DEFAULTED", True),
    ("RESTRUCTURED", True),
    ("PENDING", False),
    ("PAID", False),
    ("WRITTEN_OFF", False),
])
def test_record_payment_depends_on_status(status, allowed):
    caps = capabilities(_user("COLLECTION_OFFICER"), Resource.LOANS, _loan(status))
    assert (Action.RECORD_PAYMENT in caps) is allowed


def test_state_actions_for_managers_only():
    officer = _user("COLLECTION_OFFICER")
    manager = _user("MANAGER")
    pending = _loan("PENDING")
    active = _loan("ACTIVE")

    assert Action.APPROVE not in capabilities(officer, Resource.LOANS, pending)
    assert Action.APPROVE in capabilities(manager, Resource.LOANS, pending)
    assert Action.APPROVE not in capabilities(manager, Resource.LOANS, active)
    assert {Action.RESTRUCTURE, Action.WRITE_OFF} <= capabilities(manager, Resource.LOANS, active)
    assert Action.WRITE_OFF not in capabilities(manager, Resource.LOANS, _loan("PAID"))


def test_manager_cannot_edit_super_manager():
    manager = _user("MANAGER")
    boss = _user("SUPER_MANAGER", 2)
    officer = _user("COLLECTION_OFFICER", 3)

    assert Action.EDIT not in capabilities(manager, Resource.USERS, boss)
    assert Action.EDIT in capabilities(manager, Resource.USERS, officer)
    assert Action.DELETE not in capabilities(manager, Resource.USERS, officer)


def test_nobody_deletes_own_account():
    boss = _user("SUPER_MANAGER")
    assert Action.DELETE not in capabilities(boss, Resource.USERS, boss)
    assert Action.DELETE in capabilities(boss, Resource.USERS, _user("MANAGER", 2))


def test_only_super_manager_deletes_users():
    assert Action.DELETE in capabilities(_user("SUPER_MANAGER"), Resource.USERS)
    assert Action.DELETE not in capabilities(_user("MANAGER"), Resource.USERS)
    assert Action.DELETE not in capabilities(_user("COLLECTION_OFFICER"), Resource.USERS)


def test_everyone_can_view_own_profile():
    agent = _user("CALLING_AGENT")
    assert Action.VIEW not in capabilities(agent, Resource.USERS)
    assert Action.VIEW in capabilities(agent, Resource.USERS, agent)


def test_interaction_completes_once():
    agent = _user("CALLING_AGENT")
    abierta = Interaction.model_validate(interaction_json())
    cerrada = Interaction.model_validate(interaction_json(outcome="NO_ANSWER"))

    assert Action.COMPLETE in capabilities(agent, Resource.INTERACTIONS, abierta)
    assert Action.COMPLETE not in capabilities(agent, Resource.INTERACTIONS, cerrada)
    assert Action.CREATE_FOLLOW_UP not in capabilities(agent, Resource.INTERACTIONS)


def test_follow_up_actions_only_while_pending():
    officer = _user("COLLECTION_OFFICER")
    pendiente = FollowUp.model_validate(follow_up_json())
    hecho = FollowUp.model_validate(follow_up_json(status="COMPLETED"))

    assert {Action.COMPLETE, Action.RESCHEDULE} <= capabilities(officer, Resource.FOLLOW_UPS, pendiente)
    assert not {Action.COMPLETE, Action.RESCHEDULE} & capabilities(officer, Resource.FOLLOW_UPS, hecho)


def test_inactive_user_has_no_capabilities():
    assert capabilities(_user("SUPER_MANAGER", is_active=False), Resource.CUSTOMERS) == set()


def test_menu_by_role():
    urls = [item["url"] for item in menu_for(_user("CALLING_AGENT"))]
    assert "/loans" in urls
    assert "/users" not in urls
    assert "/reports/loans" not in urls
    assert "/loans/new" not in urls

    urls = [item["url"] for item in menu_for(_user("MANAGER"))]
    assert {"/users", "/hierarchies", "/reports/loans", "/loans/new"} <= set(urls)

    assert menu_for(None) == []
