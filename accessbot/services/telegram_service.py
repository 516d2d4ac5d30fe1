"""
accessbot/services/telegram_service.py

Purpose: Telegram Bot API client

- Sends messages, polls and message edits
- Answers callback queries
- Creates single-use invite links
- Fetches updates for long polling / manages the webhook
"""

import time
import httpx
from typing import Any, Dict, List, Optional

from accessbot.core.config import settings, Settings
from accessbot.core.exceptions import TelegramAPIError
from accessbot.core.logging import get_logger

logger = get_logger(__name__)

PARSE_MODE_HTML = "HTML"


class TelegramService:
    """Thin async wrapper over the Telegram Bot API."""

    def __init__(self, config: Optional[Settings] = None, client: Optional[httpx.AsyncClient] = None):
        config = config or settings
        self.base_url = f"{config.TELEGRAM_API_URL.rstrip('/')}/bot{config.BOT_TOKEN}"
        self.timeout = config.TELEGRAM_TIMEOUT
        self._client = client or httpx.AsyncClient(timeout=self.timeout)

    async def call(self, method: str, payload: Optional[Dict[str, Any]] = None, timeout: Optional[float] = None) -> Any:
        """
        Calls a Bot API method.

        Args:
            method: API method name (e.g. "sendMessage")
            payload: JSON parameters; None values are dropped
            timeout: Optional per-call timeout override

        Returns:
            The "result" field of the API response

        Raises:
            TelegramAPIError: On network errors, non-JSON or ok=false responses
        """
        body = {k: v for k, v in (payload or {}).items() if v is not None}
        url = f"{self.base_url}/{method}"

        try:
            response = await self._client.post(url, json=body, timeout=timeout or self.timeout)
        except httpx.TimeoutException as e:
            logger.error(f"Telegram API timeout ({method})")
            raise TelegramAPIError(method, "Request timed out") from e
        except httpx.HTTPError as e:
            logger.error(f"Telegram API transport error ({method}): {e}")
            raise TelegramAPIError(method, str(e)) from e

        try:
            data = response.json()
        except ValueError as e:
            logger.error(f"Telegram API invalid JSON ({method}): {response.status_code}")
            raise TelegramAPIError(method, f"Invalid response (HTTP {response.status_code})", response.status_code) from e

        if not data.get("ok"):
            description = data.get("description", f"HTTP {response.status_code}")
            logger.error(f"Telegram API error ({method}): {description}")
            raise TelegramAPIError(method, description, data.get("error_code"))

        return data.get("result")

    async def send_message(
        self,
        chat_id: Any,
        text: str,
        reply_markup: Optional[Dict[str, Any]] = None,
        parse_mode: Optional[str] = None
    ) -> Dict[str, Any]:
        """Sends a text message, optionally with a keyboard."""
        logger.debug(f"Sending message to {chat_id}")
        return await self.call("sendMessage", {
            "chat_id": chat_id,
            "text": text,
            "reply_markup": reply_markup,
            "parse_mode": parse_mode,
        })

    async def send_poll(
        self,
        chat_id: Any,
        question: str,
        options: List[str],
        is_anonymous: bool = False
    ) -> Dict[str, Any]:
        """Sends a single-choice poll."""
        return await self.call("sendPoll", {
            "chat_id": chat_id,
            "question": question,
            "options": [{"text": option} for option in options],
            "is_anonymous": is_anonymous,
        })

    async def edit_message_text(
        self,
        chat_id: Any,
        message_id: int,
        text: str,
        parse_mode: Optional[str] = None,
        reply_markup: Optional[Dict[str, Any]] = None
    ) -> Any:
        return await self.call("editMessageText", {
            "chat_id": chat_id,
            "message_id": message_id,
            "text": text,
            "parse_mode": parse_mode,
            "reply_markup": reply_markup,
        })

    async def edit_message_reply_markup(
        self,
        chat_id: Any,
        message_id: int,
        reply_markup: Optional[Dict[str, Any]] = None
    ) -> Any:
        return await self.call("editMessageReplyMarkup", {
            "chat_id": chat_id,
            "message_id": message_id,
            "reply_markup": reply_markup,
        })

    async def answer_callback_query(
        self,
        callback_query_id: str,
        text: Optional[str] = None,
        show_alert: bool = False
    ) -> bool:
        return await self.call("answerCallbackQuery", {
            "callback_query_id": callback_query_id,
            "text": text,
            "show_alert": show_alert,
        })

    async def create_chat_invite_link(
        self,
        chat_id: Any,
        expire_seconds: int,
        member_limit: int = 1
    ) -> str:
        """
        Creates an invite link that expires after expire_seconds.

        Returns:
            The invite link URL
        """
        result = await self.call("createChatInviteLink", {
            "chat_id": chat_id,
            "member_limit": member_limit,
            "expire_date": int(time.time()) + expire_seconds,
        })
        invite_link = (result or {}).get("invite_link")
        if not invite_link:
            raise TelegramAPIError("createChatInviteLink", "Response did not contain an invite link")
        logger.info(f"Invite link created for {chat_id} (limit={member_limit}, ttl={expire_seconds}s)")
        return invite_link

    async def get_updates(self, offset: int = 0, poll_timeout: int = 30) -> List[Dict[str, Any]]:
        """Long-polls for updates newer than offset."""
        result = await self.call(
            "getUpdates",
            {
                "offset": offset,
                "timeout": poll_timeout,
                "allowed_updates": ["message", "poll_answer", "callback_query"],
            },
            timeout=poll_timeout + self.timeout,
        )
        if not isinstance(result, list):
            return []
        return [update for update in result if isinstance(update, dict)]

    async def set_webhook(self, url: str, secret_token: Optional[str] = None) -> bool:
        return await self.call("setWebhook", {
            "url": url,
            "secret_token": secret_token,
            "allowed_updates": ["message", "poll_answer", "callback_query"],
        })

    async def delete_webhook(self) -> bool:
        return await self.call("deleteWebhook", {"drop_pending_updates": False})

    async def get_me(self) -> Dict[str, Any]:
        return await self.call("getMe")

    async def close(self):
        await self._client.aclose()
