from datetime import timedelta

import pytest

from pixeloria_chat.errors import ValidationError
from pixeloria_chat.models import PresenceRecord, utcnow


def test_no_admins_means_nobody_available(services):
    assert services.presence.find_available_admin() is None


def test_online_admin_is_available(services):
    record = services.presence.set_online("admin-1", True, "Back from lunch")
    assert record.status_message == "Back from lunch"
    assert services.presence.find_available_admin() == "admin-1"


def test_offline_admin_is_not_available(services):
    services.presence.set_online("admin-1", True)
    services.presence.set_online("admin-1", False)
    assert services.presence.find_available_admin() is None
    assert PresenceRecord.query.count() == 1


def test_stale_heartbeat_is_not_available(services):
    services.presence.set_online("admin-1", True)
    later = utcnow() + timedelta(minutes=6)
    assert services.presence.find_available_admin(now=later) is None
    assert services.presence.find_available_admin(now=utcnow() + timedelta(minutes=4)) == "admin-1"


def test_most_recent_admin_wins(services):
    services.presence.set_online("admin-1", True)
    services.presence.set_online("admin-2", True)
    assert services.presence.find_available_admin() == "admin-2"


def test_status_message_kept_when_not_given(services):
    services.presence.set_online("admin-1", True, "On call")
    record = services.presence.set_online("admin-1", True)
    assert record.status_message == "On call"


def test_default_status_message(services):
    record = services.presence.set_online("admin-1", True)
    assert record.to_dict()["status_message"] == "Available for chat"


def test_admin_id_required(services):
    with pytest.raises(ValidationError):
        services.presence.set_online("", True)


def test_record_availability_helper(services):
    record = services.presence.set_online("admin-1", True)
    assert record.is_available(utcnow(), timedelta(minutes=5))
    assert not record.is_available(utcnow() + timedelta(minutes=10), timedelta(minutes=5))
