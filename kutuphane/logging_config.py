"""Uygulama için temel loglama yapılandırması.

Kök logger'a yalnızca bir kez konsol handler'ı eklenir; istek başına
erişim logunu uvicorn'un ``uvicorn.access`` logger'ı yazar.
"""

import logging


def setup_logging(level: str = "INFO") -> None:
    logger = logging.getLogger()
    if logger.handlers:
        # Testlerde veya create_app tekrar çağrıldığında ikinci kez kurma
        return

    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    formatter = logging.Formatter(
        fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)
