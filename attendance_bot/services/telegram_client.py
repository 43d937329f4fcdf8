import httpx

from attendance_bot.config import settings
from attendance_bot.services.command_router import KEYBOARD_LAYOUT


def main_keyboard() -> dict:
    return {
        "keyboard": [[{"text": label} for label in row] for row in KEYBOARD_LAYOUT],
        "resize_keyboard": True,
        "is_persistent": True,
    }


class TelegramClient:
    """Sends replies through the Telegram Bot API."""

    def __init__(self, token: str = None, api_url: str = None, timeout: float = None):
        self.token = token if token is not None else settings.telegram_bot_token
        self.api_url = api_url or settings.telegram_api_url
        self.timeout = timeout or settings.telegram_timeout_seconds

    def _method_url(self, method: str) -> str:
        return f"{self.api_url}/bot{self.token}/{method}"

    async def send_message(self, chat_id: int, text: str) -> bool:
        """HTML-formatted message with the attendance keyboard. False if Telegram refused it."""
        if not self.token:
            print("⚠️ TELEGRAM_BOT_TOKEN not set, reply not sent")
            return False

        payload = {
            "chat_id": chat_id,
            "text": text,
            "parse_mode": "HTML",
            "reply_markup": main_keyboard(),
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(self._method_url("sendMessage"), json=payload)
        except httpx.HTTPError as e:
            print(f"❌ Telegram send error: {e}")
            return False

        if response.status_code != 200:
            print(f"❌ Telegram sendMessage {response.status_code}: {response.text[:200]}")
            return False
        return True


    async def set_webhook(self, url: str, secret_token: str = "") -> bool:
        if not self.token:
            print("⚠️ TELEGRAM_BOT_TOKEN not set, webhook not registered")
            return False

        payload = {"url": url, "allowed_updates": ["message"]}
        if secret_token:
            payload["secret_token"] = secret_token
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(self._method_url("setWebhook"), json=payload)
        except httpx.HTTPError as e:
            print(f"❌ Telegram setWebhook error: {e}")
            return False

        if response.status_code != 200:
            print(f"❌ Telegram setWebhook {response.status_code}: {response.text[:200]}")
            return False
        print(f"✅ Webhook registered: {url}")
        return True


telegram_client = TelegramClient()


def get_telegram_client() -> TelegramClient:
    return telegram_client
