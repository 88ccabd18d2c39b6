import logging

from stockflow.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def _category_enabled(category: str | None) -> bool:
    if not settings.FLOW_LOGS_ENABLED:
        return False
    if category == "cascade":
        return settings.FLOW_LOGS_CASCADE_ENABLED
    if category == "stock":
        return settings.FLOW_LOGS_STOCK_ENABLED
    if category == "ledger":
        return settings.FLOW_LOGS_LEDGER_ENABLED
    return True


def flow_info(
    logger: logging.Logger,
    msg: str,
    *args,
    category: str | None = None,
    **kwargs,
) -> None:
    if _category_enabled(category):
        logger.info(msg, *args, **kwargs)


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=(level or settings.LOG_LEVEL or "INFO").upper(),
        format=LOG_FORMAT,
    )
