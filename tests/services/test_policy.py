import pytest

from app.core.errors import AuthorizationError
from app.schemas.user import CurrentUser, UserRole
from app.services.policy import Action, Resource, Target, authorize, evaluate

def caller(role: UserRole, user_id: str) -> CurrentUser:
    return CurrentUser(id=user_id, email=f"{user_id}@shop.com", name=user_id, role=role)

ALICE = caller(UserRole.commercial, "alice")
BRUNO = caller(UserRole.commercial, "bruno")
PIERRE = caller(UserRole.technician, "pierre")
LUC = caller(UserRole.technician, "luc")
ADMIN = caller(UserRole.admin, "admin")

ALICES_CLIENT = Target(owner_id="alice")
NEW_TICKET = Target(owner_id="alice")
PIERRES_TICKET = Target(owner_id="alice", assignee_id="pierre")

class TestCategories:
    @pytest.mark.parametrize("who", [None, ALICE, PIERRE, ADMIN])
    def test_public_read(self, who):
        assert evaluate(who, Resource.category, Action.list).allowed

    def test_read_only(self):
        assert not evaluate(ADMIN, Resource.category, Action.create).allowed

class TestClients:
    def test_list_scope(self):
        assert evaluate(ALICE, Resource.client, Action.list).owner_scope == "alice"

        decision = evaluate(ADMIN, Resource.client, Action.list)
        assert decision.allowed
        assert decision.owner_scope is None

        assert not evaluate(PIERRE, Resource.client, Action.list).allowed

    @pytest.mark.parametrize(
        "who,action,allowed",
        [
            (ALICE, Action.read, True),
            (BRUNO, Action.read, False),
            (ADMIN, Action.read, True),
            (PIERRE, Action.read, False),
            (ALICE, Action.update, True),
            (BRUNO, Action.update, False),
            (ADMIN, Action.update, False),
            (ALICE, Action.delete, True),
            (ADMIN, Action.delete, False),
        ],
    )
    def test_ownership(self, who, action, allowed):
        assert evaluate(who, Resource.client, action, ALICES_CLIENT).allowed is allowed

    def test_create(self):
        assert evaluate(ALICE, Resource.client, Action.create).allowed
        assert not evaluate(PIERRE, Resource.client, Action.create).allowed
        assert not evaluate(ADMIN, Resource.client, Action.create).allowed

class TestDeclarations:
    def test_list_scope(self):
        assert evaluate(ALICE, Resource.declaration, Action.list).owner_scope == "alice"
        assert evaluate(PIERRE, Resource.declaration, Action.list).owner_scope is None
        assert evaluate(ADMIN, Resource.declaration, Action.list).owner_scope is None

    @pytest.mark.parametrize(
        "who,allowed",
        [(ALICE, True), (BRUNO, False), (PIERRE, True), (LUC, True), (ADMIN, True)],
    )
    def test_read(self, who, allowed):
        assert evaluate(who, Resource.declaration, Action.read, PIERRES_TICKET).allowed is allowed

    @pytest.mark.parametrize("who,allowed", [(PIERRE, True), (LUC, True), (ALICE, False), (ADMIN, False)])
    def test_take(self, who, allowed):
        assert evaluate(who, Resource.declaration, Action.take, NEW_TICKET).allowed is allowed

    @pytest.mark.parametrize("action", [Action.resolve, Action.update_remarks])
    def test_only_assignee_finishes(self, action):
        assert evaluate(PIERRE, Resource.declaration, action, PIERRES_TICKET).allowed
        assert not evaluate(LUC, Resource.declaration, action, PIERRES_TICKET).allowed
        assert not evaluate(ADMIN, Resource.declaration, action, PIERRES_TICKET).allowed
        assert not evaluate(PIERRE, Resource.declaration, action, NEW_TICKET).allowed

    @pytest.mark.parametrize("action", [Action.update, Action.delete])
    def test_only_author_edits(self, action):
        assert evaluate(ALICE, Resource.declaration, action, PIERRES_TICKET).allowed
        assert not evaluate(BRUNO, Resource.declaration, action, PIERRES_TICKET).allowed
        assert not evaluate(PIERRE, Resource.declaration, action, PIERRES_TICKET).allowed

class TestUsers:
    def test_admin_only(self):
        for who in (ALICE, PIERRE):
            assert not evaluate(who, Resource.user, Action.list).allowed
        assert evaluate(ADMIN, Resource.user, Action.list).allowed

    def test_admin_accounts_are_protected(self):
        target = Target(owner_id="root", role=UserRole.admin)
        assert not evaluate(ADMIN, Resource.user, Action.set_status, target).allowed
        assert not evaluate(ADMIN, Resource.user, Action.set_role, target).allowed

        target = Target(owner_id="pierre", role=UserRole.technician)
        assert evaluate(ADMIN, Resource.user, Action.set_role, target).allowed

def test_anonymous_denied_outside_categories():
    assert not evaluate(None, Resource.declaration, Action.list).allowed

def test_authorize_raises():
    with pytest.raises(AuthorizationError) as exc_info:
        authorize(BRUNO, Resource.client, Action.read, ALICES_CLIENT)
    assert exc_info.value.status_code == 403

    assert authorize(ALICE, Resource.client, Action.read, ALICES_CLIENT).allowed
