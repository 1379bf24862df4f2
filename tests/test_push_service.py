"""Expo push dispatcher tests."""

from __future__ import annotations

import json

import httpx

from app.services.push_service import PushService, compose_open_message

SQUAD_ID = "squad-1"
EVENT = {"id": "event-1", "squad_id": SQUAD_ID, "event_type": "LIVE_SELFIE"}


def _client(handler) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


def test_compose_open_message_defaults_to_english() -> None:
    title, body = compose_open_message(EVENT, None)
    assert title == "Event is LIVE!"
    assert body == "Live Selfie is now open. You have 5 minutes!"

    assert compose_open_message(EVENT, "fr")[0] == "Event is LIVE!"


def test_compose_open_message_in_hebrew() -> None:
    title, body = compose_open_message({"event_type": "POLL"}, "he")
    assert title == "האירוע התחיל!"
    assert body.startswith("הסקר היומי")


def test_no_tokens_means_no_request(fake_db) -> None:
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json={"data": []})

    report = PushService(fake_db, http_client=_client(handler)).notify_event_opened(EVENT)

    assert calls == []
    assert report.outcomes == []


def test_ticket_errors_are_reported_per_token(fake_db) -> None:
    fake_db.rows("profiles", id="user-a")[0]["expo_push_token"] = "ExponentPushToken[a]"
    fake_db.rows("profiles", id="user-b")[0]["expo_push_token"] = "ExponentPushToken[b]"

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={
                "data": [
                    {"status": "ok", "id": "ticket-1"},
                    {"status": "error", "message": "DeviceNotRegistered"},
                ]
            },
        )

    report = PushService(fake_db, http_client=_client(handler)).notify_event_opened(EVENT)

    assert (report.sent, report.failed) == (1, 1)
    assert report.outcomes[1].token == "ExponentPushToken[b]"
    assert report.outcomes[1].message == "DeviceNotRegistered"


def test_transport_error_marks_chunk_failed(fake_db) -> None:
    """Gateway outages are reported, never raised to the job."""
    fake_db.rows("profiles", id="user-a")[0]["expo_push_token"] = "ExponentPushToken[a]"

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("gateway down", request=request)

    report = PushService(fake_db, http_client=_client(handler)).notify_event_opened(EVENT)

    assert report.sent == 0
    assert report.failed == 1
    assert "gateway down" in report.outcomes[0].message


def test_large_squads_are_sent_in_chunks_of_one_hundred(fake_db) -> None:
    members = [f"user-{index}" for index in range(150)]
    fake_db.tables["squad_members"] = [
        {"squad_id": SQUAD_ID, "user_id": user_id} for user_id in members
    ]
    fake_db.tables["profiles"] = [
        {"id": user_id, "expo_push_token": f"ExponentPushToken[{user_id}]", "language": "en"}
        for user_id in members
    ]
    batch_sizes: list[int] = []

    def handler(request: httpx.Request) -> httpx.Response:
        batch = json.loads(request.content)
        batch_sizes.append(len(batch))
        return httpx.Response(200, json={"data": [{"status": "ok"} for _ in batch]})

    report = PushService(fake_db, http_client=_client(handler)).notify_event_opened(EVENT)

    assert sorted(batch_sizes) == [50, 100]
    assert report.sent == 150


def test_services_share_one_gateway_client(fake_db) -> None:
    """Each job run builds a new service; the pooled HTTP client is reused."""
    first = PushService(fake_db)
    second = PushService(fake_db)

    assert first.http is second.http
    assert not first.http.is_closed
