from typing import Optional

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    log_level: str = "INFO"

    # 0 disables truncation of the aggregated text
    aggregate_max_length: int = 0

    # Propagation re-run route: HS256 tokens minted by the host scheduler
    admin_token_secret: Optional[SecretStr] = None
    admin_token_issuer: str = "cms-host"
    admin_token_audience: str = "block-search"
    admin_token_scope: str = "propagation"

    model_config = SettingsConfigDict(
        env_prefix="BLOCKSEARCH_",
        env_file=".env",
        extra="ignore",
    )

settings = Settings()
