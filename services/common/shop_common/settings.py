"""
共通設定

環境変数（または .env）から読み込む。各サービスの Settings はこれを継承する。
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseServiceSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    log_level: str = "INFO"

    # JWT 検証 (HS* なら共有シークレット、RS* なら PEM 公開鍵)
    jwt_key: str = ""
    jwt_algorithms: list[str] = ["RS256"]
    jwt_audience: str | None = None
    jwt_issuer: str | None = None

    database_url: str = "sqlite+aiosqlite:///./shop.db"
    create_schema: bool = True
    sql_echo: bool = False
