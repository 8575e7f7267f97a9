from shop_common.settings import BaseServiceSettings


class Settings(BaseServiceSettings):
    database_url: str = "sqlite+aiosqlite:///./order-service.db"
    product_service_url: str = "http://product-service:8081"
    # 商品サービス呼び出しのタイムアウト（秒）
    product_service_timeout: float = 5.0
    # 未設定なら OrderCreated イベントを発行しない
    redis_url: str | None = None
