"""Twilio Programmable Messaging notifier.

Sends the results text through Twilio's REST API:

  POST https://api.twilio.com/2010-04-01/Accounts/{AccountSid}/Messages.json
       To=<caller>&From=<our number>&Body=<results>

Authenticated with HTTP basic auth (account SID, auth token).
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from housing.notify.base import NotificationError, Notifier
from housing.session import redact_pii

log = logging.getLogger("housing.notify.twilio")

TWILIO_API_BASE = "https://api.twilio.com/2010-04-01"


class TwilioSmsNotifier(Notifier):
    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        from_number: str,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 10.0,
    ) -> None:
        self._account_sid = account_sid
        self._auth_token = auth_token
        self._from_number = from_number
        self._transport = transport
        self._timeout = httpx.Timeout(timeout, connect=5.0)

    @property
    def messages_url(self) -> str:
        return f"{TWILIO_API_BASE}/Accounts/{self._account_sid}/Messages.json"

    async def send(self, to: str, body: str) -> None:
        payload = {"To": to, "From": self._from_number, "Body": body}
        try:
            async with httpx.AsyncClient(
                auth=(self._account_sid, self._auth_token),
                timeout=self._timeout,
                transport=self._transport,
            ) as client:
                resp = await client.post(self.messages_url, data=payload)
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPStatusError as exc:
            raise NotificationError(
                f"Twilio rejected message (status {exc.response.status_code})"
            ) from exc
        except httpx.HTTPError as exc:
            raise NotificationError(f"Twilio request failed: {exc}") from exc

        log.info("SMS sent to %s (sid=%s)", redact_pii(to), data.get("sid", "?"))
