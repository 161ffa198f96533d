"""
PagePilot config: load from env.

load_postgres_config(), LLMSettings.from_env(), StyleStoreConfig.from_env(),
load_dispatcher_config().
"""
from pagepilot.config.dispatcher import load_dispatcher_config
from pagepilot.config.llm import LLMSettings
from pagepilot.config.postgres import PostgresConfig, load_postgres_config
from pagepilot.config.style import StyleStoreConfig

__all__ = [
    "PostgresConfig",
    "load_postgres_config",
    "LLMSettings",
    "StyleStoreConfig",
    "load_dispatcher_config",
]
