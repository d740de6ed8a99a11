from __future__ import annotations

import pytest

from itad_portal.domain_errors import ValidationFailedError
from itad_portal.models import NotificationPreference
from itad_portal.schemas import NotificationPreferencesUpdate
from itad_portal.use_cases import notification_preferences


def test_defaults_are_returned_without_creating_a_row(db, world) -> None:
    prefs = notification_preferences.get_preferences(db=db, user=world["client"])

    assert prefs.user_id == world["client"].id
    assert prefs.email_enabled is True
    assert prefs.push_enabled is True
    assert prefs.onesignal_player_id is None
    assert prefs.type_preferences == {}
    assert db.query(NotificationPreference).count() == 0


def test_first_update_creates_row_and_later_updates_patch_it(db, world) -> None:
    client = world["client"]

    created = notification_preferences.update_preferences(
        db=db,
        user=client,
        data=NotificationPreferencesUpdate(email_enabled=False, type_preferences={"pickup_complete": False}),
    )
    assert created.email_enabled is False
    assert created.push_enabled is True
    assert created.type_preferences == {"pickup_complete": False}

    patched = notification_preferences.update_preferences(
        db=db,
        user=client,
        data=NotificationPreferencesUpdate(onesignal_player_id="player-1"),
    )
    assert patched.email_enabled is False
    assert patched.onesignal_player_id == "player-1"
    assert patched.type_preferences == {"pickup_complete": False}
    assert db.query(NotificationPreference).count() == 1
    assert notification_preferences.get_preferences(db=db, user=client) == patched


def test_preferences_are_per_user(db, world) -> None:
    notification_preferences.update_preferences(
        db=db,
        user=world["client"],
        data=NotificationPreferencesUpdate(push_enabled=False),
    )

    assert notification_preferences.get_preferences(db=db, user=world["admin"]).push_enabled is True


def test_unknown_notification_type_is_rejected(db, world) -> None:
    with pytest.raises(ValidationFailedError) as exc:
        notification_preferences.update_preferences(
            db=db,
            user=world["client"],
            data=NotificationPreferencesUpdate(type_preferences={"quote_sent": True, "weekly_digest": False}),
        )

    assert exc.value.code == "NOTIFICATION_PREFERENCES_INVALID"
    assert exc.value.details == {"unknown_types": ["weekly_digest"]}
    assert db.query(NotificationPreference).count() == 0
