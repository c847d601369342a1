from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from politirate.core.config import get_settings
from politirate.models import SITE_SETTINGS_ID, SiteSettings
from politirate.services.site_settings import (
    InvalidMaintenanceWindowError,
    SiteSettingsValidationError,
    get_maintenance_status,
    get_site_settings,
    is_under_maintenance,
    update_site_settings,
)

T = datetime(2026, 5, 10, 12, 0, tzinfo=timezone.utc)
HOUR = timedelta(hours=1)


@pytest.mark.parametrize(
    ("active", "start", "end", "expected"),
    [
        (False, None, None, False),
        (False, T - HOUR, T + HOUR, False),
        (True, None, None, True),
        (True, None, T - HOUR, True),
        (True, T + HOUR, None, False),
        (True, T - HOUR, None, True),
        (True, T - HOUR, T + HOUR, True),
        (True, T, T + HOUR, True),
        (True, T - HOUR, T, True),
        (True, T - 2 * HOUR, T - HOUR, False),
        (True, T + HOUR, T + 2 * HOUR, False),
    ],
)
def test_gate_truth_table(active, start, end, expected) -> None:
    assert is_under_maintenance(active, start, end, T) is expected


def test_gate_accepts_naive_timestamps_as_utc() -> None:
    naive_start = (T - HOUR).replace(tzinfo=None)
    naive_end = (T + HOUR).replace(tzinfo=None)

    assert is_under_maintenance(True, naive_start, naive_end, T)


def test_settings_row_is_created_with_defaults(db_session: Session) -> None:
    assert db_session.get(SiteSettings, SITE_SETTINGS_ID) is None

    row = get_site_settings(db_session)

    settings = get_settings()
    assert row.id == SITE_SETTINGS_ID
    assert row.maintenance_active is False
    assert row.maintenance_message == settings.default_maintenance_message
    assert row.contact_email == settings.default_contact_email
    assert get_site_settings(db_session) is row


def test_settings_read_degrades_to_defaults(db_session: Session, monkeypatch: pytest.MonkeyPatch) -> None:
    def _broken_get(*args, **kwargs):
        raise SQLAlchemyError("database unavailable")

    monkeypatch.setattr(db_session, "get", _broken_get)

    row = get_site_settings(db_session)

    assert row.maintenance_active is False
    assert row.maintenance_message == get_settings().default_maintenance_message


def test_update_rejects_inverted_window(db_session: Session) -> None:
    get_site_settings(db_session)

    with pytest.raises(InvalidMaintenanceWindowError):
        update_site_settings(
            db_session,
            {"maintenance_active": True, "maintenance_start": T + HOUR, "maintenance_end": T},
        )

    row = get_site_settings(db_session)
    assert row.maintenance_active is False
    assert row.maintenance_start is None


def test_update_rejects_null_active_flag(db_session: Session) -> None:
    update_site_settings(db_session, {"maintenance_active": True})

    with pytest.raises(SiteSettingsValidationError):
        update_site_settings(db_session, {"maintenance_active": None})

    assert get_site_settings(db_session).maintenance_active is True


def test_update_ignores_unknown_fields(db_session: Session) -> None:
    row = update_site_settings(db_session, {"contact_phone": "+91 12345", "id": 7})

    assert row.id == SITE_SETTINGS_ID
    assert row.contact_phone == "+91 12345"


def test_status_reports_message_only_while_active(db_session: Session) -> None:
    update_site_settings(
        db_session,
        {
            "maintenance_active": True,
            "maintenance_start": T - HOUR,
            "maintenance_end": T + HOUR,
            "maintenance_message": "Upgrading the database",
        },
    )

    during = get_maintenance_status(db_session, now=T)
    after = get_maintenance_status(db_session, now=T + 2 * HOUR)

    assert during.under_maintenance is True
    assert during.message == "Upgrading the database"
    assert after.under_maintenance is False
    assert after.message is None
