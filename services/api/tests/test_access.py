import pytest

from app.models import Store
from app.services.access import (
    aggregate_scope,
    global_scope,
    own_ratings_scope,
    require_role,
    store_ratings_scope,
    top_stores_scope,
)
from app.services.errors import ErrorKind, ForbiddenError
from app.services.identity import Identity, Role

ADMIN = Identity(id=1, role=Role.ADMIN)
OWNER = Identity(id=2, role=Role.STORE_OWNER)
OTHER_OWNER = Identity(id=3, role=Role.STORE_OWNER)
USER = Identity(id=4, role=Role.USER)


@pytest.fixture
def store():
    return Store(id=10, name="Corner Bakery", email="bakery@example.com", address="1 Main St", owner_id=OWNER.id)


def test_admin_sees_everything_with_raters():
    scope = global_scope(ADMIN)
    assert scope.is_global
    assert scope.expose_raters


@pytest.mark.parametrize("identity", [OWNER, USER])
def test_global_scope_is_admin_only(identity):
    with pytest.raises(ForbiddenError) as exc:
        global_scope(identity)
    assert exc.value.kind is ErrorKind.FORBIDDEN


def test_own_ratings_hide_rater_identity():
    scope = own_ratings_scope(USER)
    assert scope.rater_id == USER.id
    assert scope.store_ids is None
    assert not scope.expose_raters


def test_owner_sees_ratings_of_own_store(store):
    scope = store_ratings_scope(OWNER, store)
    assert scope.store_ids == frozenset({10})
    assert scope.expose_raters


def test_owner_cannot_see_ratings_of_foreign_store(store):
    with pytest.raises(ForbiddenError, match="your own stores"):
        store_ratings_scope(OTHER_OWNER, store)


def test_user_cannot_list_store_ratings(store):
    with pytest.raises(ForbiddenError):
        store_ratings_scope(USER, store)


def test_admin_can_list_any_store_ratings(store):
    assert store_ratings_scope(ADMIN, store).store_ids == frozenset({10})


def test_aggregate_scope_per_role():
    assert aggregate_scope(USER).is_global
    assert not aggregate_scope(USER).expose_raters
    assert aggregate_scope(ADMIN).store_ids is None
    assert aggregate_scope(OWNER, frozenset({10, 11})).store_ids == frozenset({10, 11})
    assert aggregate_scope(OWNER).store_ids == frozenset()


def test_require_role():
    require_role(USER, Role.USER, Role.ADMIN)
    with pytest.raises(ForbiddenError):
        require_role(USER, Role.ADMIN)


@pytest.mark.parametrize("identity", [ADMIN, USER])
def test_top_stores_span_every_store(identity):
    assert top_stores_scope(identity).is_global


def test_owner_cannot_rank_all_stores():
    with pytest.raises(ForbiddenError):
        top_stores_scope(OWNER)
