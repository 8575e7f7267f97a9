import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """ルートロガーにハンドラを 1 つだけ設定する（二重登録しない）。"""
    root = logging.getLogger()
    root.setLevel(level.upper())
    if not any(getattr(h, "_shop_handler", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._shop_handler = True
        root.addHandler(handler)
