# ortho_orders/core/logging.py
import logging
import sys

APP_LOGGER = "orthoorders"
HANDLER_NAME = "orthoorders.stdout"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

# DEBUG 时放开 SQL 日志，其余一律 WARNING
_QUIET_LOGGERS = ("sqlalchemy.engine", "aiosqlite", "celery.app.trace")


def setup_logging(level: str = "INFO") -> logging.Logger:
    """
    业务日志统一挂在 "orthoorders.*" 下，stdout 单 handler。

    可重复调用：只替换自己装的 handler，不动 pytest / uvicorn 挂上的。
    """
    level = (level or "INFO").upper()
    root = logging.getLogger()
    root.setLevel(level)

    for h in list(root.handlers):
        if h.get_name() == HANDLER_NAME:
            root.removeHandler(h)

    handler = logging.StreamHandler(sys.stdout)
    handler.set_name(HANDLER_NAME)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(
            logging.INFO if level == "DEBUG" and name == "sqlalchemy.engine" else logging.WARNING
        )
    return logging.getLogger(APP_LOGGER)
