from shop_common.settings import BaseServiceSettings


class Settings(BaseServiceSettings):
    database_url: str = "sqlite+aiosqlite:///./product-service.db"
    # 起動時にデモ用カタログを投入する（テーブルが空の場合のみ）
    seed_products: bool = False
