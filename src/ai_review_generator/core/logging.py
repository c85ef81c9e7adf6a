"""
日志配置
"""
import logging
import sys

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(funcName)s:%(lineno)d | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

HANDLER_NAME = "ai_review_generator.console"

# 外部 HTTP 调用与 ORM 的日志只保留 WARNING 以上
QUIET_LOGGERS = ("urllib3", "requests", "httpx", "httpcore", "sqlalchemy.engine")


def setup_logging(log_level: str = "INFO") -> None:
    """
    配置日志系统

    输出到 stdout；重复调用时替换已安装的 handler，不会重复输出
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    for handler in list(root_logger.handlers):
        if handler.get_name() == HANDLER_NAME:
            root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.set_name(HANDLER_NAME)
    console_handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    root_logger.addHandler(console_handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """
    获取日志记录器

    用法:
        logger = get_logger(__name__)
        logger.info(f"评论生成完成: content_id={content_id}")
    """
    return logging.getLogger(name)
