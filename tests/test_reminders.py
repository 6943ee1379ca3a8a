"""Tests for reminder selection, message building and dispatch."""
from datetime import date, datetime
from decimal import Decimal
from unittest.mock import Mock, patch

import pytest
import pytz
from celery.exceptions import SoftTimeLimitExceeded

from app.models.client import PaymentType
from app.models.message_template import MessageTemplate
from app.models.profile import Profile
from app.models.reminder import Reminder
from app.services import reminders
from app.services.reminders import (
    build_message,
    collect_due_reminders,
    process_reminder,
    resolve_template,
    send_delay_seconds,
)
from app.services.settings import OwnerProfile
from factories import make_client, make_plan

TODAY = date(2024, 6, 1)


def _profile(url="http://wuz", token="t", mpm=5, pix_key="pix@revenda.com"):
    return OwnerProfile(
        user_id=1,
        wuzapi_url=url,
        wuzapi_token=token,
        messages_per_minute=mpm,
        pix_key=pix_key,
        mercadopago_access_token=None,
    )


def _reminder(days_offset=-3, last_sent_date=None, content="Olá {nome}, vence {vencimento}"):
    r = Mock(spec=Reminder)
    r.id = 4
    r.user_id = 1
    r.name = "3 dias antes"
    r.days_offset = days_offset
    r.is_active = True
    r.last_sent_date = last_sent_date
    if content is None:
        r.template = None
    else:
        t = Mock(spec=MessageTemplate)
        t.content = content
        r.template = t
    return r


# ── message building ─────────────────────────────────────────────────────


def test_resolve_template_leaves_unknown_placeholders():
    assert resolve_template("Oi {nome} {outro}", {"nome": "Ana"}) == "Oi Ana {outro}"


def test_build_message_pix_client_uses_pix_key():
    client = make_client(make_plan(), due_date=date(2024, 6, 4))
    msg = build_message(
        "{nome}|{vencimento}|{valor}|{plano}|{whatsapp}|{link_pagamento}",
        client,
        _profile(),
    )
    assert msg == "João Silva|04/06/2024|R$ 35.00|Mensal|11999990000|pix@revenda.com"


@patch("app.services.reminders.settings")
def test_build_message_link_client_uses_payment_page(mock_settings):
    mock_settings.public_app_url = "https://app.example.com/"
    client = make_client(make_plan())
    client.payment_type = PaymentType.LINK
    client.price_value = Decimal("100")

    msg = build_message("{valor} {link_pagamento}", client, _profile())

    assert msg == "R$ 100.00 https://app.example.com/pay/tok123"


def test_send_delay_seconds():
    assert send_delay_seconds(5) == 12.0
    assert send_delay_seconds(7) == 8.572
    assert send_delay_seconds(60) == 1.0


def test_send_delay_seconds_falls_back_on_invalid_rate():
    with patch("app.services.reminders.settings") as mock_settings:
        mock_settings.default_messages_per_minute = 5
        assert send_delay_seconds(0) == 12.0
        assert send_delay_seconds(-5) == 12.0
        assert send_delay_seconds(None) == 12.0


def test_profile_rate_has_database_check():
    names = {c.name for c in Profile.__table__.constraints}
    assert "ck_profiles_messages_per_minute_positive" in names


# ── collect_due_reminders ────────────────────────────────────────────────


def test_collect_uses_business_clock(mock_db):
    mock_db.all.return_value = [Mock(id=2), Mock(id=9)]
    # 12:00 UTC == 09:00 in São Paulo
    today, hhmm, ids = collect_due_reminders(mock_db, datetime(2024, 6, 1, 12, 0, tzinfo=pytz.utc))

    assert today == TODAY
    assert hhmm == "09:00"
    assert ids == [2, 9]


# ── process_reminder ─────────────────────────────────────────────────────


def test_missing_reminder(mock_db):
    assert process_reminder(mock_db, 4, TODAY).status == reminders.NOT_FOUND


def test_already_sent_today(mock_db):
    mock_db.first.return_value = _reminder(last_sent_date=TODAY)
    outcome = process_reminder(mock_db, 4, TODAY)
    assert outcome.status == reminders.ALREADY_SENT
    mock_db.commit.assert_not_called()


def test_no_template_is_not_marked(mock_db):
    reminder = _reminder(content=None)
    mock_db.first.return_value = reminder
    outcome = process_reminder(mock_db, 4, TODAY)
    assert outcome.status == reminders.NO_TEMPLATE
    assert reminder.last_sent_date is None


@patch("app.services.reminders.load_owner_profile")
def test_no_channel_marks_sent(mock_profile, mock_db):
    reminder = _reminder()
    mock_db.first.return_value = reminder
    mock_profile.return_value = _profile(url=None, token=None)

    outcome = process_reminder(mock_db, 4, TODAY)

    assert outcome.status == reminders.NO_CHANNEL
    assert reminder.last_sent_date == TODAY


@patch("app.integrations.wuzapi.session_connected", return_value=False)
@patch("app.services.reminders.load_owner_profile")
def test_disconnected_marks_sent_without_sending(mock_profile, mock_connected, mock_db):
    reminder = _reminder()
    mock_db.first.return_value = reminder
    mock_profile.return_value = _profile()

    with patch("app.integrations.wuzapi.send_text") as mock_send:
        outcome = process_reminder(mock_db, 4, TODAY)

    assert outcome.status == reminders.DISCONNECTED
    assert reminder.last_sent_date == TODAY
    mock_send.assert_not_called()


@patch("app.services.reminders.time.sleep")
@patch("app.integrations.wuzapi.send_text", return_value=True)
@patch("app.integrations.wuzapi.session_connected", return_value=True)
@patch("app.services.reminders.load_owner_profile")
def test_sends_to_clients_due_in_three_days(mock_profile, mock_connected, mock_send, mock_sleep, mock_db):
    reminder = _reminder(days_offset=-3)
    mock_db.first.return_value = reminder
    clients = [make_client(due_date=date(2024, 6, 4), id=i) for i in (1, 2, 3)]
    mock_db.all.return_value = clients
    mock_profile.return_value = _profile(mpm=5)

    outcome = process_reminder(mock_db, 4, TODAY)

    assert outcome.status == reminders.SENT
    assert outcome.target_due_date == date(2024, 6, 4)
    assert outcome.sent == 3
    assert mock_send.call_count == 3
    args, kwargs = mock_send.call_args
    assert args[3] == "Olá João Silva, vence 04/06/2024"
    assert kwargs["send_id"] == "reminder-4-2024-06-01-3"
    # spacing between sends only
    assert mock_sleep.call_count == 2
    mock_sleep.assert_called_with(12.0)
    assert reminder.last_sent_date == TODAY


@patch("app.services.reminders.time.sleep")
@patch("app.integrations.wuzapi.send_text")
@patch("app.integrations.wuzapi.session_connected", return_value=True)
@patch("app.services.reminders.load_owner_profile")
def test_send_failures_do_not_stop_the_run(mock_profile, mock_connected, mock_send, mock_sleep, mock_db):
    reminder = _reminder()
    mock_db.first.return_value = reminder
    mock_db.all.return_value = [make_client(id=i) for i in (1, 2, 3)]
    mock_profile.return_value = _profile()
    mock_send.side_effect = [False, RuntimeError("socket closed"), True]

    outcome = process_reminder(mock_db, 4, TODAY)

    assert outcome.sent == 1
    assert outcome.failed == 2
    assert reminder.last_sent_date == TODAY


@patch("app.integrations.wuzapi.session_connected", return_value=True)
@patch("app.services.reminders.load_owner_profile")
def test_no_clients_still_marks_sent(mock_profile, mock_connected, mock_db):
    reminder = _reminder(days_offset=0)
    mock_db.first.return_value = reminder
    mock_profile.return_value = _profile()

    outcome = process_reminder(mock_db, 4, TODAY)

    assert outcome.status == reminders.NO_CLIENTS
    assert outcome.target_due_date == TODAY
    assert reminder.last_sent_date == TODAY


@patch("app.services.reminders.time.sleep")
@patch("app.integrations.wuzapi.send_text")
@patch("app.integrations.wuzapi.session_connected", return_value=True)
@patch("app.services.reminders.load_owner_profile")
def test_time_limit_stops_run_and_consumes_reminder(mock_profile, mock_connected, mock_send, mock_sleep, mock_db):
    reminder = _reminder()
    mock_db.first.return_value = reminder
    mock_db.all.return_value = [make_client(id=i) for i in (1, 2, 3)]
    mock_profile.return_value = _profile()
    mock_send.side_effect = [True, SoftTimeLimitExceeded()]

    with pytest.raises(SoftTimeLimitExceeded):
        process_reminder(mock_db, 4, TODAY)

    assert mock_send.call_count == 2
    assert reminder.last_sent_date == TODAY
    mock_db.commit.assert_called()


@patch("app.services.reminders.time.sleep", side_effect=SoftTimeLimitExceeded())
@patch("app.integrations.wuzapi.send_text", return_value=True)
@patch("app.integrations.wuzapi.session_connected", return_value=True)
@patch("app.services.reminders.load_owner_profile")
def test_time_limit_during_throttle_consumes_reminder(mock_profile, mock_connected, mock_send, mock_sleep, mock_db):
    reminder = _reminder()
    mock_db.first.return_value = reminder
    mock_db.all.return_value = [make_client(id=i) for i in (1, 2)]
    mock_profile.return_value = _profile()

    with pytest.raises(SoftTimeLimitExceeded):
        process_reminder(mock_db, 4, TODAY)

    assert mock_send.call_count == 1
    assert reminder.last_sent_date == TODAY
