"""Configuration management using Pydantic settings."""

import re
from typing import List, Optional
from pydantic import Field, validator
from pydantic_settings import BaseSettings


EOSIO_NAME_PATTERN = re.compile(r"^[a-z1-5.]{1,12}$")


class FailoverConfig(BaseSettings):
    """Configuration for the block producer failover monitor."""

    # Chain API Settings
    api_url: str = Field(description="nodeos HTTP API endpoint")
    wallet_url: str = Field(default="http://127.0.0.1:6666", description="keosd HTTP API endpoint")
    wallet_name: Optional[str] = Field(default=None, description="keosd wallet to unlock before signing")
    wallet_password: Optional[str] = Field(default=None, description="keosd wallet password")
    rpc_timeout: float = Field(default=10.0, gt=0, description="Timeout for each HTTP call in seconds")
    rpc_retry_attempts: int = Field(default=2, ge=1, description="Attempts for read calls")
    rpc_retry_delay: float = Field(default=1.0, ge=0, description="Delay between read retries in seconds")

    # Producer Settings
    producer_account: str = Field(description="Block producer account name")
    producer_permission: str = Field(default="active", description="Permission used to sign regproducer/unregprod")
    producer_website: str = Field(description="Website registered with the producer")
    producer_location: int = Field(default=0, ge=0, description="Location code registered with the producer")
    producer_signing_pubkeys: List[str] = Field(
        default_factory=list,
        description="Ordered backup signing keys to fail over to"
    )

    # Monitoring Settings
    rounds_missed_threshold: int = Field(default=1, ge=1, description="Missed rounds before taking action")
    total_producers: int = Field(default=21, ge=1, description="Producer rows requested from get_producers")
    round_timer: int = Field(default=126, gt=0, description="Seconds between checks")

    # Transaction Settings
    tx_blocks_behind: int = Field(default=3, ge=0, description="Reference block distance from head")
    tx_expire_seconds: int = Field(default=60, gt=0, description="Transaction expiration window")

    # Notification Settings
    chain_label: str = Field(default="eos", description="Label prefixed to notifications")
    slack_webhook_url: Optional[str] = Field(default=None, description="Slack incoming webhook URL")
    slack_channel: Optional[str] = Field(default=None, description="Slack channel override")
    telegram_bot_token: Optional[str] = Field(default=None, description="Telegram bot token")
    telegram_chat_id: Optional[str] = Field(default=None, description="Telegram chat id")

    # Logging Settings
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="json", description="Log format (json|text)")
    log_file: Optional[str] = Field(default=None, description="Log file path")
    log_max_size_mb: int = Field(default=50, description="Max log file size in MB")
    log_backup_count: int = Field(default=5, description="Number of log backups")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        env_prefix = "FAILOVER_"
        case_sensitive = False
        extra = "ignore"

    @validator('producer_account')
    def validate_producer_account(cls, v):
        """Validate the producer is a well-formed EOSIO account name."""
        if not EOSIO_NAME_PATTERN.match(v):
            raise ValueError(f"Invalid EOSIO account name: {v!r}")
        return v

    @validator('producer_signing_pubkeys')
    def validate_signing_pubkeys(cls, v):
        """Strip blanks and drop duplicates while keeping order."""
        keys = []
        for key in v:
            key = key.strip()
            if key and key not in keys:
                keys.append(key)
        return keys

    @validator('log_format')
    def validate_log_format(cls, v):
        """Only json and text renderers are supported."""
        if v.lower() not in ("json", "text"):
            raise ValueError("log_format must be 'json' or 'text'")
        return v.lower()

    @property
    def api_base_url(self) -> str:
        """nodeos endpoint without a trailing slash."""
        return self.api_url.rstrip('/')

    @property
    def wallet_base_url(self) -> str:
        """keosd endpoint without a trailing slash."""
        return self.wallet_url.rstrip('/')

    def summary(self) -> dict:
        """Non-secret view of the configuration for logs and the CLI."""
        return {
            "api_url": self.api_base_url,
            "wallet_url": self.wallet_base_url,
            "producer_account": self.producer_account,
            "producer_permission": self.producer_permission,
            "backup_keys": len(self.producer_signing_pubkeys),
            "rounds_missed_threshold": self.rounds_missed_threshold,
            "total_producers": self.total_producers,
            "round_timer": self.round_timer,
            "slack": bool(self.slack_webhook_url),
            "telegram": bool(self.telegram_bot_token and self.telegram_chat_id),
        }
