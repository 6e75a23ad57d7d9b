from typing import List, Optional
import httpx
import logging

from rentseeker.schemas.events import Options

logger = logging.getLogger(__name__)


def to_inline_keyboard(options: Optional[Options]) -> Optional[dict]:
    if options is None:
        return None
    return {
        "inline_keyboard": [
            [{"text": button.text, "callback_data": button.data} for button in row]
            for row in options
        ]
    }


class TelegramClient:
    """
    Thin Bot API client. Delivery failures are logged and come back as None;
    they are never raised into the dialogue.
    """

    def __init__(self, token: str, http_client: Optional[httpx.AsyncClient] = None):
        self.base_url = f"https://api.telegram.org/bot{token}"
        self._http_client = http_client

    async def _call(self, method: str, payload: dict):
        url = f"{self.base_url}/{method}"
        try:
            if self._http_client is not None:
                response = await self._http_client.post(url, json=payload)
            else:
                async with httpx.AsyncClient(timeout=30) as client:
                    response = await client.post(url, json=payload)
            response.raise_for_status()
            return response.json().get("result")
        except httpx.HTTPStatusError as e:
            # Telegram explains what went wrong in the body
            logger.error(f"Telegram {method} failed: {e.response.text}")
            return None
        except httpx.HTTPError as e:
            logger.error(f"Telegram Client Error ({method}): {e}")
            return None

    async def send_text(self, chat_id: int, text: str, options: Optional[Options] = None):
        payload = {"chat_id": chat_id, "text": text, "parse_mode": "HTML"}
        keyboard = to_inline_keyboard(options)
        if keyboard is not None:
            payload["reply_markup"] = keyboard
        result = await self._call("sendMessage", payload)
        return result.get("message_id") if result else None

    async def send_media(self, chat_id: int, photo_urls: List[str]):
        # Telegram only accepts media groups of 2-10 items
        media = [{"type": "photo", "media": url} for url in photo_urls[:10]]
        if len(media) == 1:
            return await self._call("sendPhoto", {"chat_id": chat_id, "photo": media[0]["media"]})
        return await self._call("sendMediaGroup", {"chat_id": chat_id, "media": media})

    async def edit_options(self, chat_id: int, message_id: int, options: Options):
        return await self._call(
            "editMessageReplyMarkup",
            {"chat_id": chat_id, "message_id": message_id, "reply_markup": to_inline_keyboard(options)},
        )

    async def edit_text(self, chat_id: int, message_id: int, text: str, options: Optional[Options] = None):
        payload = {"chat_id": chat_id, "message_id": message_id, "text": text, "parse_mode": "HTML"}
        keyboard = to_inline_keyboard(options)
        if keyboard is not None:
            payload["reply_markup"] = keyboard
        return await self._call("editMessageText", payload)

    async def answer_callback(self, callback_id: str, text: str = ""):
        payload = {"callback_query_id": callback_id}
        if text:
            payload["text"] = text
        return await self._call("answerCallbackQuery", payload)

    async def set_webhook(self, url: str, secret_token: Optional[str] = None):
        payload = {"url": url, "allowed_updates": ["message", "callback_query"]}
        if secret_token:
            payload["secret_token"] = secret_token
        result = await self._call("setWebhook", payload)
        if result:
            logger.info(f"Webhook registered at {url}")
        return result
