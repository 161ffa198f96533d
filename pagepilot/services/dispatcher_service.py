"""DispatcherService: build a fully-wired Dispatcher from configuration."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from pagepilot.config.style import StyleStoreConfig
from pagepilot.orchestrator.dispatcher import Dispatcher
from pagepilot.orchestrator.types import DispatcherConfig
from pagepilot.services.record_store import RecordStore
from pagepilot.services.style_store import StyleStore

if TYPE_CHECKING:
    from pagepilot.clients.llm.base import BaseLLMClient
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

logger = logging.getLogger(__name__)


class DispatcherService:
    """Factory that builds the store adapters and a ready-to-use ``Dispatcher``."""

    @staticmethod
    def build(
        session_factory: "async_sessionmaker[AsyncSession]",
        llm_client: "BaseLLMClient",
        *,
        config: Optional[DispatcherConfig] = None,
        style_config: Optional[StyleStoreConfig] = None,
    ) -> Dispatcher:
        config = config or DispatcherConfig()
        dispatcher = Dispatcher(
            llm_client,
            RecordStore(session_factory),
            StyleStore(session_factory, style_config or StyleStoreConfig()),
            config,
        )
        logger.info(
            "DispatcherService: built dispatcher llm=%s default_route=%s timeout=%s",
            llm_client.provider,
            config.default_route.value,
            config.llm_timeout_seconds,
        )
        return dispatcher
