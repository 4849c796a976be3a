import pytest

from evalecole.core.exceptions import ConfirmationRequiredError
from evalecole.utils.confirmation import ConfirmationManager


def ask(manager, operation="delete_user", subject="prof1", token=None):
    with pytest.raises(ConfirmationRequiredError) as exc_info:
        manager.require(operation, subject, token, "Supprimer ?")
    return exc_info.value


def test_first_call_issues_a_token():
    error = ask(ConfirmationManager())

    assert error.token
    assert error.operation == "delete_user"
    assert error.subject == "prof1"
    assert error.prompt == "Supprimer ?"


def test_token_confirms_once():
    manager = ConfirmationManager()
    token = ask(manager).token

    manager.require("delete_user", "prof1", token, "Supprimer ?")

    ask(manager, token=token)


def test_token_is_bound_to_operation_and_subject():
    manager = ConfirmationManager()
    token = ask(manager).token

    ask(manager, subject="prof2", token=token)
    ask(manager, operation="reset_points", token=token)


def test_expired_token_is_refused():
    manager = ConfirmationManager(ttl_seconds=0)
    token = ask(manager).token

    retry = ask(manager, token=token)

    assert retry.token != token
