# storefront/core/logging.py
import logging

LOG_FORMAT = "%(asctime)s %(levelname)-7s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """루트 로거를 한 번만 설정한다. uvicorn 로거는 건드리지 않음."""
    root = logging.getLogger()
    if getattr(root, "_storefront_configured", False):
        root.setLevel(level.upper())
        return

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    root.setLevel(level.upper())
    root._storefront_configured = True
