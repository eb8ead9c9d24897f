"""
日志配置模块
提供统一的日志记录功能，支持控制台输出和按模块轮转的文件输出
"""

import logging
import os
import sys
from pathlib import Path
from logging.handlers import RotatingFileHandler

LOG_FORMAT = "%(asctime)s - [%(levelname)s] - [%(name)s:%(funcName)s:%(lineno)d] - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# 默认日志目录放在 backend/logs 下，可通过 KINTAI_LOG_DIR 覆盖
LOG_DIR = Path(os.environ.get("KINTAI_LOG_DIR", Path(__file__).resolve().parents[2] / "logs"))


def setup_logger(
    name: str,
    log_file: str = None,
    level: int = logging.DEBUG,
    max_bytes: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 5
) -> logging.Logger:
    """
    配置并返回一个日志记录器

    Args:
        name: 日志记录器名称
        log_file: 日志文件名（不含路径），为空时只输出到控制台
        level: 日志级别
        max_bytes: 单个日志文件最大字节数
        backup_count: 保留的日志文件备份数量

    Returns:
        配置好的日志记录器
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # 避免重复添加处理器
    if logger.handlers:
        return logger

    formatter = logging.Formatter(LOG_FORMAT, DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        try:
            LOG_DIR.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                LOG_DIR / log_file,
                maxBytes=max_bytes,
                backupCount=backup_count,
                encoding="utf-8",
            )
        except OSError as e:
            # 只读文件系统等情况下退化为仅控制台输出
            logger.warning(f"无法创建日志文件 {log_file}: {e}")
        else:
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    获取或创建日志记录器，每个模块写入各自的 <name>.log
    """
    return setup_logger(name, f"{name}.log")


class RequestLogger:
    """请求日志记录器，用于记录 API 请求的详细信息"""

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def log_request_start(self, request_id: str, endpoint: str, file_name: str = None):
        """记录请求开始"""
        self.logger.info(
            f"[REQUEST_START] RequestID: {request_id} | Endpoint: {endpoint} | "
            f"File: {file_name or 'N/A'}"
        )

    def log_request_success(self, request_id: str, duration_ms: float, message: str = ""):
        """记录请求成功"""
        self.logger.info(
            f"[REQUEST_SUCCESS] RequestID: {request_id} | Duration: {duration_ms:.2f}ms | "
            f"Message: {message}"
        )

    def log_request_error(self, request_id: str, duration_ms: float, error: str):
        """记录请求失败"""
        self.logger.error(
            f"[REQUEST_ERROR] RequestID: {request_id} | Duration: {duration_ms:.2f}ms | "
            f"Error: {error}"
        )

    def log_step(self, request_id: str, step: str, message: str):
        """记录请求处理步骤"""
        self.logger.debug(
            f"[REQUEST_STEP] RequestID: {request_id} | Step: {step} | Message: {message}"
        )


def log_exception(logger: logging.Logger, message: str, exc_info=True):
    """
    记录异常信息

    Args:
        logger: 日志记录器
        message: 错误描述
        exc_info: 是否包含异常堆栈信息
    """
    logger.error(message, exc_info=exc_info)


def log_performance(logger: logging.Logger, operation: str, duration_ms: float):
    """
    记录性能指标

    Args:
        logger: 日志记录器
        operation: 操作名称
        duration_ms: 耗时（毫秒）
    """
    logger.info(f"[PERFORMANCE] Operation: {operation} | Duration: {duration_ms:.2f}ms")


__all__ = [
    "setup_logger",
    "get_logger",
    "RequestLogger",
    "log_exception",
    "log_performance",
    "LOG_DIR",
]
