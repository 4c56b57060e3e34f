import logging, sys
from app.settings import settings

_NOISY_LOGGERS = ("httpx", "httpcore", "pdfminer")


def configure_logging(level: str | None = None):
    level_name = (level or settings.LOG_LEVEL).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format=f"%(asctime)s %(levelname)s [{settings.ENV}] %(name)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)]
    )
    # httpx logs every provider request URL at INFO; pdfminer warns per malformed object
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
