"""Telegram Bot API client for SignalPulse alerts.

Uses raw HTTP POST via requests. Messages are sent in HTML parse mode.
"""
import html
import logging
from datetime import datetime, timezone

import requests

from models.alerts import DeliveryResult
from models.enums import AlertType

logger = logging.getLogger("signalpulse.telegram")

TELEGRAM_API = "https://api.telegram.org/bot{token}"

_TYPE_EMOJI = {
    AlertType.BUY: "\U0001F7E2",
    AlertType.SELL: "\U0001F534",
    AlertType.CAUTION: "\U0001F7E1",
    AlertType.INFO: "ℹ️",
}


class TelegramBot:
    """Thin wrapper around Telegram Bot API."""

    def __init__(self, bot_token: str, chat_id: str = None, timeout: int = 30):
        self.bot_token = bot_token
        self.chat_id = str(chat_id) if chat_id is not None else None
        self.timeout = timeout
        self.base_url = TELEGRAM_API.format(token=bot_token)

    # ── core API ─────────────────────────────────────

    def send_message(self, text: str, chat_id: str = None,
                     parse_mode: str = "HTML") -> dict:
        """Send a text message. Returns Telegram API response dict."""
        url = f"{self.base_url}/sendMessage"
        payload = {
            "chat_id": chat_id or self.chat_id,
            "text": text,
            "parse_mode": parse_mode,
            "disable_web_page_preview": True,
        }
        try:
            resp = requests.post(url, json=payload, timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
            if not data.get("ok"):
                logger.warning("Telegram API error: %s", data.get("description"))
            return data
        except requests.RequestException as e:
            logger.error("Telegram send failed: %s", e)
            raise

    def deliver(self, text: str, chat_id: str = None) -> DeliveryResult:
        """Send and report the outcome instead of raising."""
        if not self.bot_token:
            return DeliveryResult(success=False, error="Telegram bot token not configured")
        if not (chat_id or self.chat_id):
            return DeliveryResult(success=False, error="Telegram chat id not configured")
        try:
            data = self.send_message(text, chat_id=chat_id)
        except requests.RequestException as e:
            return DeliveryResult(success=False, error=str(e))
        if not data.get("ok"):
            return DeliveryResult(success=False, error=data.get("description", "Telegram API error"))
        message_id = data.get("result", {}).get("message_id")
        return DeliveryResult(success=True,
                              message_id=str(message_id) if message_id is not None else None)

    def verify_token(self) -> dict:
        """Verify bot token via getMe endpoint."""
        url = f"{self.base_url}/getMe"
        resp = requests.get(url, timeout=10)
        resp.raise_for_status()
        return resp.json()

    def verify_chat(self, chat_id: str = None) -> bool:
        """Check that the bot can reach ``chat_id`` via getChat."""
        url = f"{self.base_url}/getChat"
        try:
            resp = requests.get(url, params={"chat_id": chat_id or self.chat_id}, timeout=10)
            return resp.status_code == 200 and bool(resp.json().get("ok"))
        except requests.RequestException as e:
            logger.warning("Telegram chat verification failed: %s", e)
            return False


# ── formatters ───────────────────────────────────

def format_alert_message(alert_type, snapshot, reason: str = "", now=None) -> str:
    """Render an alert as Telegram HTML."""
    alert_type = AlertType(alert_type)
    now = now or datetime.now(timezone.utc)

    lines = [
        f"{_TYPE_EMOJI[alert_type]} <b>SignalPulse Alert: {alert_type.value}</b>",
        "",
        f"\U0001F4C5 {now.strftime('%Y-%m-%d %H:%M UTC')}",
    ]
    if reason:
        lines.append(f"<b>Trigger:</b> {html.escape(reason)}")
    lines.append("")

    if snapshot.price is not None:
        lines.append(f"<b>\U0001F4B0 BTC Price:</b> ${snapshot.price:,.2f}")
    if snapshot.price_change_24h is not None:
        lines.append(f"<b>\U0001F4C8 24h Change:</b> {snapshot.price_change_24h:+.2f}%")
    if snapshot.price is not None or snapshot.price_change_24h is not None:
        lines.append("")

    lines.append("<b>\U0001F4CA Market Sentiment:</b>")
    if snapshot.fear_greed is not None:
        label = f" ({html.escape(snapshot.fear_greed_label)})" if snapshot.fear_greed_label else ""
        lines.append(f"• Fear &amp; Greed: <b>{snapshot.fear_greed:.0f}</b>{label}")
    if snapshot.funding_rate is not None:
        lines.append(f"• Funding Rate: {snapshot.funding_rate:+.4f}%")
    if snapshot.long_short_ratio is not None:
        long_pct = f" ({snapshot.long_percent:.1f}% Long)" if snapshot.long_percent is not None else ""
        lines.append(f"• Long/Short: {snapshot.long_short_ratio:.2f}{long_pct}")
    if snapshot.overall_signal:
        overall = snapshot.overall_signal.replace("_", " ").upper()
        lines.append(f"• Overall: <b>{overall}</b> ({int(snapshot.overall_score or 0):+d})")

    lines += ["", "<i>⚠️ Not financial advice. DYOR.</i>"]
    return "\n".join(lines)
