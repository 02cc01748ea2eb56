"""
Tests for moderation: bans, content reports and system messages.
"""
from datetime import timedelta

import pytest
from sqlalchemy import select

from skillswap.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from skillswap.models import AdminAction, Notification
from skillswap.models.common import utcnow
from skillswap.services.admin_service import AdminService


@pytest.fixture
def moderation(db):
    return AdminService(db)


def actions(db, action):
    return list(db.scalars(select(AdminAction).where(AdminAction.action == action)))


def test_ban_and_unban(db, moderation, admin, alice):
    banned = moderation.ban_user(admin.id, alice.id, "Spam")

    assert banned.is_banned is True
    assert banned.ban_reason == "Spam"
    assert banned.banned_at is not None
    assert actions(db, "ban_user")[0].target_id == alice.id

    restored = moderation.unban_user(admin.id, alice.id)

    assert restored.is_banned is False
    assert restored.ban_reason is None
    assert len(actions(db, "unban_user")) == 1
    titles = set(db.scalars(select(Notification.title).where(Notification.user_id == alice.id)))
    assert {"Account Suspended", "Account Restored"} <= titles


def test_admin_cannot_ban_self(moderation, admin):
    with pytest.raises(ValidationError):
        moderation.ban_user(admin.id, admin.id, "oops")


def test_admins_cannot_be_banned(moderation, make_user, admin):
    other_admin = make_user(name="Other Admin", role="admin")
    with pytest.raises(AuthorizationError):
        moderation.ban_user(admin.id, other_admin.id, "coup")


def test_ban_unknown_user(moderation, admin):
    with pytest.raises(NotFoundError):
        moderation.ban_user(admin.id, "missing", "Spam")


def test_report_and_review(db, moderation, admin, alice, bob):
    report = moderation.report_content(alice.id, "user", bob.id, "Harassment", description="Rude messages")

    assert report.status == "pending"
    assert [r.id for r in moderation.list_reports(status="pending")] == [report.id]

    reviewed = moderation.review_report(admin.id, report.id, "resolved")

    assert reviewed.status == "resolved"
    assert reviewed.reviewed_by == admin.id
    assert reviewed.reviewed_at is not None
    assert moderation.list_reports(status="pending") == []
    assert actions(db, "review_report")[0].details == {"status": "resolved"}


def test_review_cannot_reopen(moderation, admin, alice, bob):
    report = moderation.report_content(alice.id, "swap_request", "some-id", "Fake")
    with pytest.raises(ValidationError):
        moderation.review_report(admin.id, report.id, "pending")


def test_system_message_skips_banned_users(db, moderation, admin, alice, bob):
    moderation.ban_user(admin.id, bob.id, "Spam")

    system_message = moderation.create_system_message(admin.id, "Maintenance", "Down at 2am", type="maintenance")

    recipients = set(db.scalars(
        select(Notification.user_id).where(Notification.related_id == system_message.id)
    ))
    assert recipients == {admin.id, alice.id}
    assert actions(db, "send_message")[0].details == {"recipients": 2}


def test_active_system_messages_exclude_expired(moderation, admin):
    live = moderation.create_system_message(admin.id, "Live", "still running")
    moderation.create_system_message(admin.id, "Old", "gone", expires_at=utcnow() - timedelta(days=1))
    future = moderation.create_system_message(admin.id, "Soon", "later", expires_at=utcnow() + timedelta(days=1))

    assert {m.id for m in moderation.list_active_system_messages()} == {live.id, future.id}
