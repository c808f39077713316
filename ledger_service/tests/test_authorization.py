from uuid import uuid4

import pytest

from ..core.errors import FailureKind, ForbiddenError, InsufficientFundsError, error_for_kind
from ..models import AccountModel, Role
from ..services import Principal
from ..services.authorization import (
    authorize_account_access,
    authorize_account_opening,
    authorize_originate,
    authorize_source_account,
    authorize_transfer,
)

USER = Principal(id=uuid4(), role=Role.USER)
SYSTEM = Principal(id=uuid4(), role=Role.SYSTEM)


def test_roles_gate_entry_points() -> None:
    authorize_transfer(USER)
    authorize_originate(SYSTEM)
    authorize_account_opening(USER)

    with pytest.raises(ForbiddenError):
        authorize_transfer(SYSTEM)
    with pytest.raises(ForbiddenError):
        authorize_originate(USER)
    with pytest.raises(ForbiddenError):
        authorize_account_opening(SYSTEM)


def test_account_ownership() -> None:
    owned = AccountModel(owner_id=USER.id)
    foreign = AccountModel(owner_id=uuid4())

    authorize_source_account(USER, owned)
    authorize_account_access(USER, owned)
    authorize_account_access(SYSTEM, foreign)

    with pytest.raises(ForbiddenError):
        authorize_source_account(USER, foreign)
    with pytest.raises(ForbiddenError):
        authorize_account_access(USER, foreign)
    with pytest.raises(ForbiddenError):
        authorize_source_account(SYSTEM, foreign)


def test_stored_failure_kinds_rebuild_their_error() -> None:
    error = error_for_kind("insufficient_funds", "Insufficient funds for transfer")

    assert isinstance(error, InsufficientFundsError)
    assert error.kind is FailureKind.INSUFFICIENT_FUNDS
    assert str(error) == "Insufficient funds for transfer"
    assert not ForbiddenError.retryable
