"""Expo push notification fan-out for opened events."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import httpx

from app.config import settings
from app.services.common import SupabaseService
from app.services.event_rules import EVENT_DURATION
from app.utils.http_client import get_push_http_client
from supabase import Client

DEFAULT_LANGUAGE = "en"

EVENT_NAMES = {
    "en": {
        "LIVE_SELFIE": "Live Selfie",
        "PRESSURE_TAP": "Pressure Tap",
        "POLL": "Daily Poll",
    },
    "he": {
        "LIVE_SELFIE": "סלפי חי",
        "PRESSURE_TAP": "לחיצת לחץ",
        "POLL": "הסקר היומי",
    },
}
FALLBACK_EVENT_NAME = {"en": "Daily Event", "he": "האירוע היומי"}
OPEN_TITLE = {"en": "Event is LIVE!", "he": "האירוע התחיל!"}
OPEN_BODY = {
    "en": "{name} is now open. You have {minutes} minutes!",
    "he": "{name} פתוח עכשיו. יש לכם {minutes} דקות!",
}

logger = logging.getLogger(__name__)


@dataclass
class PushOutcome:
    """Delivery result for one push token."""

    token: str
    ok: bool
    message: str | None = None


@dataclass
class PushReport:
    """Per-recipient results for one event's notification batch."""

    event_id: str
    outcomes: list[PushOutcome] = field(default_factory=list)

    @property
    def sent(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.ok)

    @property
    def failed(self) -> int:
        return sum(1 for outcome in self.outcomes if not outcome.ok)


def compose_open_message(event: dict[str, Any], language: str | None) -> tuple[str, str]:
    """Return the localized (title, body) announcing that an event opened."""
    lang = language if language in OPEN_TITLE else DEFAULT_LANGUAGE
    name = EVENT_NAMES[lang].get(str(event.get("event_type")), FALLBACK_EVENT_NAME[lang])
    minutes = int(EVENT_DURATION.total_seconds() // 60)
    return OPEN_TITLE[lang], OPEN_BODY[lang].format(name=name, minutes=minutes)


class PushService:
    """Resolve squad push tokens and submit best-effort batches to Expo."""

    def __init__(self, client: Client, http_client: httpx.Client | None = None) -> None:
        self.db = SupabaseService(client)
        self.http = http_client or get_push_http_client()

    def recipients(self, squad_id: str) -> list[dict[str, Any]]:
        """Return profiles of squad members that registered a push token."""
        member_ids = self.db.squad_member_ids(squad_id)
        if not member_ids:
            return []
        profiles = self.db.execute(
            self.db.client.table("profiles")
            .select("id,expo_push_token,language")
            .in_("id", member_ids),
            default=[],
        )
        return [profile for profile in profiles if profile.get("expo_push_token")]

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json", "Content-Type": "application/json"}
        if settings.expo_access_token:
            headers["Authorization"] = f"Bearer {settings.expo_access_token}"
        return headers

    def _send_chunk(self, messages: list[dict[str, Any]]) -> list[PushOutcome]:
        tokens = [str(message["to"]) for message in messages]
        try:
            response = self.http.post(
                settings.expo_push_url,
                json=messages,
                headers=self._headers(),
            )
            response.raise_for_status()
            tickets = response.json().get("data") or []
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Push batch of %s failed: %s", len(messages), exc)
            return [PushOutcome(token=token, ok=False, message=str(exc)) for token in tokens]

        outcomes: list[PushOutcome] = []
        for index, token in enumerate(tokens):
            ticket = tickets[index] if index < len(tickets) else {}
            if ticket.get("status") == "ok":
                outcomes.append(PushOutcome(token=token, ok=True))
            else:
                outcomes.append(
                    PushOutcome(
                        token=token,
                        ok=False,
                        message=str(ticket.get("message") or "No ticket returned"),
                    )
                )
        return outcomes

    def notify_event_opened(self, event: dict[str, Any]) -> PushReport:
        """Tell every squad member with a device that ``event`` is open."""
        event_id = str(event["id"])
        report = PushReport(event_id=event_id)

        recipients = self.recipients(str(event["squad_id"]))
        if not recipients:
            logger.info("No push tokens for squad %s", event["squad_id"])
            return report

        messages = []
        for profile in recipients:
            title, body = compose_open_message(event, profile.get("language"))
            messages.append(
                {
                    "to": profile["expo_push_token"],
                    "sound": "default",
                    "title": title,
                    "body": body,
                    "data": {"screen": "/(tabs)", "eventId": event_id},
                }
            )

        batch_size = max(1, settings.push_batch_size)
        for start in range(0, len(messages), batch_size):
            report.outcomes.extend(self._send_chunk(messages[start : start + batch_size]))

        logger.info(
            "Push for event %s: %s sent, %s failed", event_id, report.sent, report.failed
        )
        return report
