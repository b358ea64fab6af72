"""Unit tests for actor resolution and the admin guard."""

from __future__ import annotations

import pytest
from django.contrib.auth import get_user_model
from django.contrib.auth.models import AnonymousUser, Group

from modules.core.authorization import ADMIN_GROUP_NAME, ActorContext, Role
from modules.core.exceptions import AdminRoleRequired

pytestmark = pytest.mark.unit

User = get_user_model()


def test_staff_user_is_admin(admin_user):
    actor = ActorContext.from_user(admin_user)
    assert actor.role == Role.ADMIN
    assert actor.is_admin
    assert actor.user_id == admin_user.pk


def test_superuser_is_admin():
    user = User.objects.create_superuser("root", "root@example.com", "testpass123")
    assert ActorContext.from_user(user).is_admin


def test_admin_group_member_is_admin():
    user = User.objects.create_user("grouped", "grouped@example.com", "testpass123")
    group, _ = Group.objects.get_or_create(name=ADMIN_GROUP_NAME)
    user.groups.add(group)
    assert ActorContext.from_user(user).is_admin


def test_plain_user_carries_email_and_name(regular_user):
    actor = ActorContext.from_user(regular_user)
    assert actor.role == Role.USER
    assert not actor.is_admin
    assert actor.email == "shopper@example.com"
    assert actor.name == "Sam Shopper"


def test_name_falls_back_to_username(other_user):
    assert ActorContext.from_user(other_user).name == "other"


def test_anonymous_user_is_plain_user():
    actor = ActorContext.from_user(AnonymousUser())
    assert actor.role == Role.USER
    assert actor.user_id is None


def test_system_actor_is_admin():
    actor = ActorContext.system()
    assert actor.is_admin
    assert actor.user_id is None


def test_require_admin_rejects_users(user_actor):
    with pytest.raises(AdminRoleRequired, match="accept orders"):
        user_actor.require_admin("accept orders")


def test_require_admin_allows_admins(admin_actor):
    admin_actor.require_admin("accept orders")
