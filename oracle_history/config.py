"""
Configuration settings for the Oracle Query History service.

Uses Pydantic Settings to load environment variables for the Mirror Node and
backend endpoints, logging, and the topic/provider tables that drive the
history heuristics. Mapping and list fields accept JSON in the environment,
e.g. ``KNOWN_TOPICS='{"oracle_queries": "0.0.6533324"}'``.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Dict, List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_KNOWN_TOPICS: Dict[str, str] = {
    "oracle_queries": "0.0.6533324",
    "compute_operations": "0.0.6533323",
    "consensus_results": "0.0.6503587",
    "price_feeds": "0.0.6503588",
    "weather_data": "0.0.6503589",
    "chatbot_responses": "0.0.6503590",
    "dia_prices": "0.0.6503591",
    "chainlink_prices": "0.0.6503592",
    "audit_log": "0.0.4629583",
    "health_checks": "0.0.4629584",
    "system_metrics": "0.0.4629585",
}

DEFAULT_TOPIC_PROVIDERS: Dict[str, str] = {
    "0.0.6503589": "weather",
    "0.0.6503590": "chatbot",
}


class Settings(BaseSettings):
    # Application
    app_env: str = Field("development", alias="APP_ENV")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")
    api_host: str = Field("0.0.0.0", alias="API_HOST")
    api_port: int = Field(8000, alias="API_PORT")

    # Hedera Mirror Node
    mirror_node_url: str = Field("https://testnet.mirrornode.hedera.com", alias="MIRROR_NODE_URL")
    mirror_messages_per_topic: int = Field(30, alias="MIRROR_MESSAGES_PER_TOPIC")
    mirror_max_concurrency: int = Field(8, alias="MIRROR_MAX_CONCURRENCY")
    mirror_timeout_seconds: float = Field(10.0, alias="MIRROR_TIMEOUT_SECONDS")
    mirror_fetch_attempts: int = Field(1, alias="MIRROR_FETCH_ATTEMPTS")
    hashscan_url: str = Field("https://hashscan.io/testnet", alias="HASHSCAN_URL")

    # Backend collaborators
    hcs_topics_url: str = Field("http://localhost:4001/api/hcs/topics", alias="HCS_TOPICS_URL")
    hcs_topics_timeout_seconds: float = Field(3.0, alias="HCS_TOPICS_TIMEOUT_SECONDS")
    oracle_manager_url: str = Field("https://negravis-app.vercel.app", alias="ORACLE_MANAGER_URL")
    oracle_manager_timeout_seconds: float = Field(30.0, alias="ORACLE_MANAGER_TIMEOUT_SECONDS")

    # History defaults
    history_default_limit: int = Field(20, alias="HISTORY_DEFAULT_LIMIT")

    # Topic / provider tables
    known_topics: Dict[str, str] = Field(
        default_factory=lambda: dict(DEFAULT_KNOWN_TOPICS), alias="KNOWN_TOPICS"
    )
    dia_topic_id: Optional[str] = Field("0.0.6503591", alias="DIA_TOPIC_ID")
    topic_providers: Dict[str, str] = Field(
        default_factory=lambda: dict(DEFAULT_TOPIC_PROVIDERS), alias="TOPIC_PROVIDERS"
    )
    provider_aliases: Dict[str, str] = Field(
        default_factory=lambda: {"llama-3.3-70b-instruct": "chatbot"}, alias="PROVIDER_ALIASES"
    )
    provider_priority: List[str] = Field(
        default_factory=lambda: ["coingecko", "dia", "chainlink", "weather"],
        alias="PROVIDER_PRIORITY",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


__all__ = ["DEFAULT_KNOWN_TOPICS", "DEFAULT_TOPIC_PROVIDERS", "Settings", "get_settings"]
