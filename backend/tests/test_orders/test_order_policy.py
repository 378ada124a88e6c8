"""
Tests for the order access policy.
"""

import uuid

import pytest

from storefront.database.models import UserRole
from storefront.services.orders.policy import Actor, OrderAccessContext, OrderAccessPolicy

OWNER = uuid.uuid4()
STAKE_VENDOR = uuid.uuid4()
OTHER_VENDOR = uuid.uuid4()
STRANGER = uuid.uuid4()
ADMIN = uuid.uuid4()

CONTEXT = OrderAccessContext.build(OWNER, [STAKE_VENDOR])


@pytest.fixture
def policy() -> OrderAccessPolicy:
    return OrderAccessPolicy()


@pytest.mark.parametrize(
    "actor,expected",
    [
        (Actor(ADMIN, UserRole.ADMIN), True),
        (Actor(STAKE_VENDOR, UserRole.VENDOR), True),
        (Actor(OTHER_VENDOR, UserRole.VENDOR), False),
        (Actor(OWNER, UserRole.CUSTOMER), True),
        (Actor(STRANGER, UserRole.CUSTOMER), False),
    ],
    ids=["admin", "stake-vendor", "other-vendor", "owner", "stranger"],
)
def test_view_and_modify_share_rules(policy, actor, expected):
    assert policy.can_view(actor, CONTEXT) is expected
    assert policy.can_modify(actor, CONTEXT) is expected


def test_customer_id_in_vendor_set_is_not_a_vendor_grant(policy):
    context = OrderAccessContext.build(OWNER, [STRANGER])

    assert policy.can_view(Actor(STRANGER, UserRole.CUSTOMER), context) is False


def test_vendor_who_placed_the_order_is_treated_as_owner(policy):
    context = OrderAccessContext.build(OTHER_VENDOR, [STAKE_VENDOR])

    assert policy.can_modify(Actor(OTHER_VENDOR, UserRole.VENDOR), context) is True


def test_context_normalizes_vendor_ids():
    context = OrderAccessContext.build(OWNER, [STAKE_VENDOR, STAKE_VENDOR])

    assert context.vendor_ids == frozenset({STAKE_VENDOR})
