"""
accessbot/flow/context.py

Purpose: Dependencies shared by all flow handlers

- Telegram client, session store, reviewer gate, answer limits, settings
- Built once per process and owned by the Dispatcher
"""

from dataclasses import dataclass
from typing import Optional

from accessbot.core.config import Settings
from accessbot.flow.machine import FlowLimits
from accessbot.flow.reviewer import ReviewerGate
from accessbot.services.session_service import SessionStore
from accessbot.services.telegram_service import TelegramService


@dataclass
class BotContext:
    bot: TelegramService
    store: SessionStore
    gate: ReviewerGate
    limits: FlowLimits
    config: Settings

    @classmethod
    def from_settings(
        cls,
        config: Settings,
        bot: TelegramService,
        store: Optional[SessionStore] = None
    ) -> "BotContext":
        return cls(
            bot=bot,
            store=store if store is not None else SessionStore(),
            gate=ReviewerGate(config.ADMIN_CHAT_ID),
            limits=FlowLimits(
                text_min_length=config.TEXT_MIN_LENGTH,
                text_max_length=config.TEXT_MAX_LENGTH,
                poll_options=tuple(config.POLL_OPTIONS),
            ),
            config=config,
        )

    @property
    def reviewer_chat_id(self) -> str:
        return self.config.ADMIN_CHAT_ID
