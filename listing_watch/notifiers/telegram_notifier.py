# listing_watch/notifiers/telegram_notifier.py

"""Notification delivery through the Telegram Bot API."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from curl_cffi import requests as curl_requests

from listing_watch.config.settings import Settings

TELEGRAM_API = "https://api.telegram.org"


@dataclass(frozen=True)
class NotifyResult:
    """Outcome of one delivery attempt."""

    success: bool
    error: str | None = None


class BaseNotifier(ABC):
    """Delivers a formatted message; never raises on delivery failure."""

    @abstractmethod
    def notify(self, message: str) -> NotifyResult:
        """Send *message* and report whether it was delivered."""
        ...

    def close(self) -> None:  # pragma: no cover
        """Override if the notifier keeps an open session."""
        return None


class TelegramNotifier(BaseNotifier):
    """Posts Markdown messages to one chat via ``sendMessage``.

    Missing credentials disable delivery: every call then returns a
    failed result without touching the network.
    """

    def __init__(
        self,
        settings: Settings,
        logger: logging.Logger | None = None,
    ) -> None:
        self.settings = settings
        self.bot_token = settings.TELEGRAM_BOT_TOKEN
        self.chat_id = settings.TELEGRAM_CHAT_ID
        self.logger = logger or logging.getLogger(
            "listing_watch.notifier"
        )
        self.session = curl_requests.Session(
            impersonate=settings.IMPERSONATE_BROWSER
        )
        self._warned_disabled = False

    @property
    def enabled(self) -> bool:
        """True when both the bot token and the chat id are set."""
        return bool(self.bot_token and self.chat_id)

    def _payload(self, message: str, parse_mode: str | None) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "chat_id": self.chat_id,
            "text": message,
            "disable_web_page_preview": False,
        }
        if parse_mode:
            payload["parse_mode"] = parse_mode
        return payload

    def notify(
        self, message: str, parse_mode: str | None = "Markdown",
    ) -> NotifyResult:
        """Send *message* to the configured chat."""
        if not self.enabled:
            if not self._warned_disabled:
                self.logger.warning(
                    "Telegram credentials not configured; "
                    "notifications are disabled"
                )
                self._warned_disabled = True
            return NotifyResult(success=False, error="credentials missing")

        url = f"{TELEGRAM_API}/bot{self.bot_token}/sendMessage"
        try:
            resp = self.session.post(
                url,
                json=self._payload(message, parse_mode),
                timeout=self.settings.NOTIFY_TIMEOUT_MS / 1000,
            )
        except Exception as exc:
            self.logger.error(
                "Error sending Telegram notification: %s", exc, exc_info=True
            )
            return NotifyResult(success=False, error=str(exc))

        if resp.status_code != 200:
            detail = str(resp.text)[:200]
            self.logger.error(
                "Telegram returned HTTP %d: %s", resp.status_code, detail
            )
            return NotifyResult(
                success=False, error=f"HTTP {resp.status_code}: {detail}"
            )

        try:
            body: Any = resp.json()
        except ValueError as exc:
            self.logger.error("Telegram returned a non-JSON body: %s", exc)
            return NotifyResult(success=False, error="invalid response body")

        if not isinstance(body, dict) or not body.get("ok"):
            description = (
                body.get("description", "unknown error")
                if isinstance(body, dict)
                else "unknown error"
            )
            self.logger.error("Telegram API error: %s", description)
            return NotifyResult(success=False, error=str(description))

        self.logger.debug("Telegram message sent to chat %s", self.chat_id)
        return NotifyResult(success=True)

    def close(self) -> None:
        self.session.close()
