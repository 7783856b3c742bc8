"""
Centralized Configuration Management

This module provides centralized configuration management for the BUX bot.
It loads and validates configuration from environment variables and .env files,
grouped into nested sections per collaborator.
"""

from typing import Dict, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class SolanaConfig(BaseSettings):
    """Solana ledger configuration."""

    model_config = SettingsConfigDict(env_prefix="SOLANA_")

    rpc_url: str = "https://api.mainnet-beta.solana.com"
    rpc_api_key: Optional[str] = None
    request_timeout: float = 10.0

    # BUX fungible token
    bux_mint: str = "FMiRxSbLqRTWiBszt1DZmXd7SrscWCccY7fcXNtwWxHK"
    bux_decimals: int = 9


class DiscordConfig(BaseSettings):
    """Discord identity service configuration."""

    model_config = SettingsConfigDict(env_prefix="DISCORD_")

    token: Optional[str] = None
    guild_id: Optional[str] = None
    api_base_url: str = "https://discord.com/api/v10"
    request_timeout: float = 15.0


class RoleConfig(BaseSettings):
    """
    Discord role ids managed by the bot.

    Collection roles read ROLE_ID_<COLLECTION> and ROLE_ID_<COLLECTION>_WHALE,
    BUX tier roles keep the ROLE_ID_<AMOUNT>_BUX names used by the deployment.
    A role left unset is simply not managed.
    """

    model_config = SettingsConfigDict(env_prefix="ROLE_ID_", populate_by_name=True)

    # Holder roles
    fcked_catz: Optional[str] = None
    celebcatz: Optional[str] = None
    money_monsters: Optional[str] = None
    money_monsters3d: Optional[str] = None
    ai_bitbots: Optional[str] = None
    warriors: Optional[str] = None
    squirrels: Optional[str] = None
    rjctd_bots: Optional[str] = None
    energy_apes: Optional[str] = None
    doodle_bots: Optional[str] = None
    candy_bots: Optional[str] = None

    # Whale roles, only for collections with a whale threshold
    fcked_catz_whale: Optional[str] = None
    money_monsters_whale: Optional[str] = None
    money_monsters3d_whale: Optional[str] = None
    ai_bitbots_whale: Optional[str] = None

    # BUX balance tiers
    bux_2500: Optional[str] = Field(default=None, validation_alias="ROLE_ID_2500_BUX")
    bux_10000: Optional[str] = Field(default=None, validation_alias="ROLE_ID_10000_BUX")
    bux_25000: Optional[str] = Field(default=None, validation_alias="ROLE_ID_25000_BUX")
    bux_50000: Optional[str] = Field(default=None, validation_alias="ROLE_ID_50000_BUX")

    def holder_role(self, collection: str) -> Optional[str]:
        return getattr(self, collection, None)

    def whale_role(self, collection: str) -> Optional[str]:
        return getattr(self, f"{collection}_whale", None)

    def bux_tier_roles(self) -> Dict[int, Optional[str]]:
        """Tier threshold in whole BUX -> role id."""
        return {
            2500: self.bux_2500,
            10000: self.bux_10000,
            25000: self.bux_25000,
            50000: self.bux_50000,
        }


class AggregationConfig(BaseSettings):
    """Wallet aggregation pacing and retry policy."""

    model_config = SettingsConfigDict(env_prefix="AGGREGATION_")

    wallet_delay_seconds: float = 1.0
    retry_max_attempts: int = 3
    retry_base_delay_seconds: float = 2.0
    retry_max_delay_seconds: float = 8.0


class RewardsConfig(BaseSettings):
    """Daily reward accrual configuration."""

    model_config = SettingsConfigDict(env_prefix="REWARDS_")

    accrual_interval_seconds: int = 24 * 60 * 60
    # Collection key -> BUX/day, replaces the catalog rate for that key
    rate_overrides: Dict[str, int] = {}
    cas_max_attempts: int = 3


class AppConfig(BaseSettings):
    """
    Centralized application configuration with nested sections.
    """

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # Core application settings
    database_path: str = "data/buxbot.db"
    hashlist_directory: str = "hashlists"
    log_level: str = "INFO"
    log_format: str = "text"
    log_file: Optional[str] = None

    # Nested configuration sections
    solana: SolanaConfig = SolanaConfig()
    discord: DiscordConfig = DiscordConfig()
    roles: RoleConfig = RoleConfig()
    aggregation: AggregationConfig = AggregationConfig()
    rewards: RewardsConfig = RewardsConfig()


# Global settings instance
def create_settings() -> AppConfig:
    """Create settings instance from environment variables and .env files only."""
    return AppConfig()


settings = create_settings()
