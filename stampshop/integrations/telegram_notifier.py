"""Merchant messaging over the Telegram Bot API."""
from __future__ import annotations

from typing import Protocol

from aiogram import Bot
from aiogram.exceptions import TelegramAPIError
from aiogram.types import BufferedInputFile

from stampshop.core.constants import MESSAGE_MAX_LENGTH
from stampshop.core.exceptions import NotificationException
from stampshop.logging_config import logger


class Notifier(Protocol):
    async def send_text(self, recipient: str, text: str) -> None:
        ...


def split_message(text: str, limit: int = MESSAGE_MAX_LENGTH) -> list[str]:
    """Cut ``text`` into chunks Telegram accepts, preferring line breaks."""
    if len(text) <= limit:
        return [text]
    chunks: list[str] = []
    rest = text
    while len(rest) > limit:
        cut = rest.rfind("\n", 0, limit)
        if cut <= 0:
            cut = limit
        chunks.append(rest[:cut])
        rest = rest[cut:].lstrip("\n")
    if rest:
        chunks.append(rest)
    return chunks


class TelegramNotifier:
    """Sends plain-text messages and files to a chat.

    With no bot configured the message is only logged, which keeps local
    development usable without a token.
    """

    def __init__(self, bot: Bot | None):
        self.bot = bot

    @property
    def enabled(self) -> bool:
        return self.bot is not None

    async def send_text(self, recipient: str, text: str) -> None:
        if not self.bot:
            logger.info(f"[notifier disabled] to={recipient}: {text[:200]}")
            return
        try:
            for chunk in split_message(text):
                await self.bot.send_message(chat_id=recipient, text=chunk)
        except TelegramAPIError as exc:
            logger.error(f"Failed to send message to {recipient}: {exc}")
            raise NotificationException(f"Telegram rechazó el mensaje: {exc}") from exc

    async def send_document(
        self, recipient: str, filename: str, content: bytes, caption: str | None = None
    ) -> None:
        if not self.bot:
            logger.info(f"[notifier disabled] to={recipient}: file {filename} ({len(content)} bytes)")
            return
        try:
            await self.bot.send_document(
                chat_id=recipient,
                document=BufferedInputFile(content, filename=filename),
                caption=caption[:1024] if caption else None,
            )
        except TelegramAPIError as exc:
            logger.error(f"Failed to send document to {recipient}: {exc}")
            raise NotificationException(f"Telegram rechazó el archivo: {exc}") from exc

    async def close(self) -> None:
        if self.bot:
            await self.bot.session.close()
