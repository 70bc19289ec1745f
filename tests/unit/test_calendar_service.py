"""CalendarService のユニットテスト

リポジトリを MagicMock(spec=ABC) に差し替えてユースケースを検証する。
"""

from datetime import datetime, timezone

import pytest
from advent.domain.errors import (
    CalendarNotFoundError,
    DoorLockedError,
    DoorNotFoundError,
    PermissionDeniedError,
)
from advent.domain.models import AdventCalendar, AppUser, Door, DoorContentType
from advent.services.calendar_service import CalendarService

_DEC_3 = datetime(2026, 12, 3, 10, 0, tzinfo=timezone.utc)


@pytest.fixture
def service(mock_calendar_repo, mock_user_repo) -> CalendarService:
    return CalendarService(calendar_repo=mock_calendar_repo, user_repo=mock_user_repo)


class TestEnsureUser:
    def test_existing_user_returned(self, service, mock_user_repo, sample_user):
        assert service.ensure_user("creator-uid") is sample_user
        mock_user_repo.save.assert_not_called()

    def test_new_user_created(self, service, mock_user_repo):
        mock_user_repo.get.return_value = None

        user = service.ensure_user("new-uid", display_name="ゲスト")

        assert user == AppUser(uid="new-uid", display_name="ゲスト")
        mock_user_repo.save.assert_called_once_with(user)


class TestCreateCalendar:
    def test_creates_empty_calendar_and_links_user(
        self, service, mock_calendar_repo, mock_user_repo, sample_user
    ):
        # Act
        calendar = service.create_calendar("creator-uid", "次郎", "ゲーム")

        # Assert
        assert calendar.id == "cal-new"
        assert calendar.creator_uid == "creator-uid"
        assert len(calendar.doors) == 24
        assert calendar.filled_door_count == 0
        mock_calendar_repo.save.assert_called_once()
        assert sample_user.created_calendars == ["cal-1", "cal-new"]
        mock_user_repo.save.assert_called_once_with(sample_user)


class TestGetCalendar:
    def test_not_found(self, service, mock_calendar_repo):
        mock_calendar_repo.get.return_value = None
        with pytest.raises(CalendarNotFoundError):
            service.get_calendar("missing")


class TestEditDoor:
    def test_set_door_text(self, service, mock_calendar_repo):
        calendar = service.set_door_text("creator-uid", "cal-1", 3, "おめでとう")

        door = calendar.get_door(3)
        assert door.content_type is DoorContentType.TEXT
        assert door.text == "おめでとう"
        assert calendar.filled_door_count == 3
        mock_calendar_repo.save.assert_called_once_with(calendar)

    def test_set_door_image(self, service):
        calendar = service.set_door_image("creator-uid", "cal-1", 1, "https://x")
        door = calendar.get_door(1)
        assert door.content_type is DoorContentType.IMAGE
        assert door.text is None

    def test_clear_door(self, service):
        calendar = service.clear_door("creator-uid", "cal-1", 1)
        assert calendar.get_door(1).content_type is DoorContentType.EMPTY

    def test_non_creator_denied(self, service, mock_calendar_repo):
        with pytest.raises(PermissionDeniedError):
            service.set_door_text("someone-else", "cal-1", 3, "x")
        mock_calendar_repo.save.assert_not_called()

    def test_unknown_day(self, service):
        with pytest.raises(DoorNotFoundError):
            service.set_door_text("creator-uid", "cal-1", 25, "x")


class TestReceiveCalendar:
    def test_appends_to_received(self, service, mock_user_repo):
        mock_user_repo.get.return_value = AppUser(uid="recipient")

        calendar = service.receive_calendar("recipient", "cal-1")

        assert calendar.id == "cal-1"
        saved = mock_user_repo.save.call_args.args[0]
        assert saved.received_calendars == ["cal-1"]

    def test_missing_calendar(self, service, mock_calendar_repo, mock_user_repo):
        mock_calendar_repo.get.return_value = None
        with pytest.raises(CalendarNotFoundError):
            service.receive_calendar("recipient", "missing")
        mock_user_repo.save.assert_not_called()

    def test_list_received_skips_missing(
        self, service, mock_calendar_repo, mock_user_repo, sample_calendar
    ):
        mock_user_repo.get.return_value = AppUser(
            uid="recipient", received_calendars=["cal-1", "gone"]
        )
        mock_calendar_repo.get.side_effect = lambda cid: (
            sample_calendar if cid == "cal-1" else None
        )

        assert service.list_received("recipient") == [sample_calendar]

    def test_list_received_unknown_user(self, service, mock_user_repo):
        mock_user_repo.get.return_value = None
        assert service.list_received("nobody") == []


class TestDeleteCalendar:
    def test_creator_deletes_and_unlinks(
        self, service, mock_calendar_repo, mock_user_repo, sample_user
    ):
        service.delete_calendar("creator-uid", "cal-1")

        mock_calendar_repo.delete.assert_called_once_with("cal-1")
        assert sample_user.created_calendars == []
        mock_user_repo.save.assert_called_once_with(sample_user)

    def test_non_creator_denied(self, service, mock_calendar_repo):
        with pytest.raises(PermissionDeniedError):
            service.delete_calendar("recipient", "cal-1")
        mock_calendar_repo.delete.assert_not_called()


class TestOpenDoor:
    @pytest.fixture(autouse=True)
    def _recipient(self, mock_user_repo):
        """recipient は cal-1 を受け取り済み"""
        mock_user_repo.get.return_value = AppUser(
            uid="recipient", received_calendars=["cal-1"]
        )

    def test_open_unlocks_and_saves(self, service, mock_calendar_repo):
        door = service.open_door("recipient", "cal-1", 2, now=_DEC_3)

        assert door.is_unlocked is True
        assert door.unlocked_at == _DEC_3
        mock_calendar_repo.save.assert_called_once()

    def test_locked_door_raises(self, service, mock_calendar_repo):
        with pytest.raises(DoorLockedError):
            service.open_door("recipient", "cal-1", 4, now=_DEC_3)
        mock_calendar_repo.save.assert_not_called()

    def test_already_open_is_noop(self, service, mock_calendar_repo, sample_calendar):
        opened_at = datetime(2026, 12, 1, tzinfo=timezone.utc)
        sample_calendar.get_door(1).unlock(now=opened_at)

        door = service.open_door("recipient", "cal-1", 1, now=_DEC_3)

        assert door.unlocked_at == opened_at
        mock_calendar_repo.save.assert_not_called()

    def test_after_season_all_doors_open(self, service):
        door = service.open_door(
            "recipient", "cal-1", 24, now=datetime(2027, 1, 2, tzinfo=timezone.utc)
        )
        assert door.is_unlocked is True

    def test_missing_door(self, service, mock_calendar_repo):
        mock_calendar_repo.get.return_value = AdventCalendar(
            id="cal-1",
            creator_uid="creator-uid",
            recipient_name="花子",
            recipient_interest="",
            doors=[Door(day=1)],
        )
        with pytest.raises(DoorNotFoundError):
            service.open_door("recipient", "cal-1", 2, now=_DEC_3)

    def test_user_who_did_not_receive_is_denied(
        self, service, mock_calendar_repo, mock_user_repo, sample_calendar
    ):
        # Arrange
        mock_user_repo.get.return_value = AppUser(uid="stranger")

        # Act
        with pytest.raises(PermissionDeniedError):
            service.open_door("stranger", "cal-1", 1, now=_DEC_3)

        # Assert
        door = sample_calendar.get_door(1)
        assert door.is_unlocked is False
        assert door.unlocked_at is None
        mock_calendar_repo.save.assert_not_called()

    def test_unknown_user_is_denied(self, service, mock_user_repo):
        mock_user_repo.get.return_value = None
        with pytest.raises(PermissionDeniedError):
            service.open_door("nobody", "cal-1", 1, now=_DEC_3)

    def test_creator_is_denied_even_if_received(
        self, service, mock_calendar_repo, mock_user_repo
    ):
        mock_user_repo.get.return_value = AppUser(
            uid="creator-uid", received_calendars=["cal-1"]
        )
        with pytest.raises(PermissionDeniedError):
            service.open_door("creator-uid", "cal-1", 1, now=_DEC_3)
        mock_calendar_repo.save.assert_not_called()

    def test_first_recipient_open_keeps_timestamp(
        self, service, sample_calendar, mock_user_repo
    ):
        mock_user_repo.get.return_value = AppUser(uid="stranger")
        with pytest.raises(PermissionDeniedError):
            service.open_door("stranger", "cal-1", 1, now=_DEC_3)
        mock_user_repo.get.return_value = AppUser(
            uid="recipient", received_calendars=["cal-1"]
        )
        later = datetime(2026, 12, 10, tzinfo=timezone.utc)

        door = service.open_door("recipient", "cal-1", 1, now=later)

        assert door.unlocked_at == later
