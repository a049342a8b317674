"""
TaxDesk - Notification Service Tests

Inbox listing, read state and retention cleanup.
"""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from taxdesk.models.notification import NotificationType
from taxdesk.services.notification_service import NotificationService
from taxdesk.utils.error_handling import NotFoundException

NOW = datetime(2024, 11, 20, 9, 0, tzinfo=timezone.utc)


async def make_inbox(service, user, client=None):
    """Three notifications, one hour apart, oldest first."""
    created = []
    for offset, (title, notification_type) in enumerate([
        ("Upcoming: GSTR-1 - Nov 2024 for Acme Traders (filing)", NotificationType.INFO),
        ("Reminder: ASMT-10 #N-1 for Acme Traders (reply)", NotificationType.WARNING),
        ("Overdue: GSTR-3B - Oct 2024 for Acme Traders (filing)", NotificationType.ERROR),
    ]):
        created.append(await service.create_notification(
            user_id=user.id,
            title=title,
            message="-",
            notification_type=notification_type,
            client_id=client.id if client else None,
            created_at=NOW - timedelta(hours=3 - offset),
        ))
    return created


class TestInbox:

    @pytest.mark.asyncio
    async def test_newest_first_with_total(self, db_session, practitioner, acme):
        service = NotificationService(db_session)
        created = await make_inbox(service, practitioner, acme)

        notifications, total = await service.get_user_notifications(practitioner.id)

        assert total == 3
        assert [n.id for n in notifications] == [n.id for n in reversed(created)]

    @pytest.mark.asyncio
    async def test_pagination(self, db_session, practitioner):
        service = NotificationService(db_session)
        created = await make_inbox(service, practitioner)

        page, total = await service.get_user_notifications(practitioner.id, limit=1, offset=1)

        assert total == 3
        assert [n.id for n in page] == [created[1].id]

    @pytest.mark.asyncio
    async def test_filter_by_type(self, db_session, practitioner):
        service = NotificationService(db_session)
        await make_inbox(service, practitioner)

        notifications, total = await service.get_user_notifications(
            practitioner.id, notification_type=NotificationType.ERROR
        )

        assert total == 1
        assert notifications[0].title.startswith("Overdue:")

    @pytest.mark.asyncio
    async def test_filter_by_client(self, db_session, seed, practitioner, acme):
        service = NotificationService(db_session)
        await make_inbox(service, practitioner, acme)
        zenith = await seed.client(practitioner, "Zenith Exports")
        await service.create_notification(
            practitioner.id, "Zenith only", "-", client_id=zenith.id, created_at=NOW
        )

        notifications, total = await service.get_user_notifications(practitioner.id, client_id=zenith.id)

        assert total == 1
        assert notifications[0].title == "Zenith only"

    @pytest.mark.asyncio
    async def test_other_users_notifications_are_hidden(self, db_session, seed, practitioner):
        service = NotificationService(db_session)
        colleague = await seed.user("Rahul Mehta")
        await make_inbox(service, colleague)

        notifications, total = await service.get_user_notifications(practitioner.id)

        assert total == 0
        assert notifications == []

    @pytest.mark.asyncio
    async def test_get_notification_by_id_is_scoped_to_user(self, db_session, seed, practitioner):
        service = NotificationService(db_session)
        [first, *_] = await make_inbox(service, practitioner)
        colleague = await seed.user("Rahul Mehta")

        assert (await service.get_notification_by_id(first.id, practitioner.id)).id == first.id
        assert await service.get_notification_by_id(first.id, colleague.id) is None


class TestReadState:

    @pytest.mark.asyncio
    async def test_unread_count(self, db_session, practitioner):
        service = NotificationService(db_session)
        await make_inbox(service, practitioner)

        assert await service.get_unread_count(practitioner.id) == 3

    @pytest.mark.asyncio
    async def test_mark_as_read(self, db_session, practitioner):
        service = NotificationService(db_session)
        created = await make_inbox(service, practitioner)

        updated = await service.mark_as_read([created[0].id, created[1].id], practitioner.id, now=NOW)

        assert updated == 2
        assert await service.get_unread_count(practitioner.id) == 1
        unread, total = await service.get_user_notifications(practitioner.id, unread_only=True)
        assert total == 1
        assert unread[0].id == created[2].id

    @pytest.mark.asyncio
    async def test_mark_as_read_twice_counts_once(self, db_session, practitioner):
        service = NotificationService(db_session)
        created = await make_inbox(service, practitioner)

        await service.mark_as_read([created[0].id], practitioner.id, now=NOW)
        assert await service.mark_as_read([created[0].id], practitioner.id, now=NOW) == 0

    @pytest.mark.asyncio
    async def test_mark_as_read_ignores_other_users(self, db_session, seed, practitioner):
        service = NotificationService(db_session)
        created = await make_inbox(service, practitioner)
        colleague = await seed.user("Rahul Mehta")

        assert await service.mark_as_read([created[0].id], colleague.id, now=NOW) == 0
        assert await service.get_unread_count(practitioner.id) == 3

    @pytest.mark.asyncio
    async def test_mark_as_read_with_no_ids(self, db_session, practitioner):
        assert await NotificationService(db_session).mark_as_read([], practitioner.id) == 0

    @pytest.mark.asyncio
    async def test_mark_all_as_read(self, db_session, practitioner):
        service = NotificationService(db_session)
        await make_inbox(service, practitioner)

        assert await service.mark_all_as_read(practitioner.id, now=NOW) == 3
        assert await service.get_unread_count(practitioner.id) == 0


class TestRetention:

    @pytest.mark.asyncio
    async def test_deletes_only_old_read_notifications(self, db_session, practitioner):
        service = NotificationService(db_session)
        old_read = await service.create_notification(
            practitioner.id, "old read", "-", created_at=NOW - timedelta(days=100)
        )
        await service.create_notification(
            practitioner.id, "old unread", "-", created_at=NOW - timedelta(days=100)
        )
        recent_read = await service.create_notification(
            practitioner.id, "recent read", "-", created_at=NOW - timedelta(days=10)
        )
        await service.mark_as_read([old_read.id, recent_read.id], practitioner.id, now=NOW)

        deleted = await service.delete_old_notifications(days_old=90, now=NOW)

        assert deleted == 1
        remaining, _ = await service.get_user_notifications(practitioner.id)
        assert sorted(n.title for n in remaining) == ["old unread", "recent read"]


class TestEvents:

    @pytest.mark.asyncio
    async def test_unknown_return_raises(self, db_session):
        with pytest.raises(NotFoundException):
            await NotificationService(db_session).notify_return_filed(uuid4(), now=NOW)

    @pytest.mark.asyncio
    async def test_unknown_notice_raises(self, db_session):
        with pytest.raises(NotFoundException):
            await NotificationService(db_session).notify_new_notice(uuid4(), now=NOW)
