"""日志管理器 - 统一的日志配置和管理。

提供：
- 统一的日志配置
- 日志混入类（为存储适配器、流包装器提供类专用日志器）
"""

from __future__ import annotations

from loguru import logger


def setup_logging(log_level: str = "INFO", log_file: str | None = None) -> None:
    """设置日志配置。

    Args:
        log_level: 日志级别（默认：INFO）
        log_file: 日志文件路径（可选）
    """
    log_level = log_level.upper()

    # 替换已有配置（包括 loguru 的默认输出），由应用启动时调用一次
    logger.remove()

    # 控制台输出
    logger.add(
        lambda msg: print(msg, end=""),
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        level=log_level,
        colorize=True,
    )

    # 文件输出
    if log_file:
        logger.add(
            log_file,
            rotation="00:00",
            retention="7 days",
            level=log_level,
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
            encoding="utf-8",
            enqueue=True,
        )

    logger.info(f"日志系统初始化完成，级别: {log_level}")


class LoggerMixin:
    """日志混入类。

    为类提供日志功能。

    使用示例:
        class S3Filesystem(IFilesystem, LoggerMixin):
            def write(self, location, contents, config=None):
                self.logger.debug("上传文件")
    """

    @property
    def logger(self):
        """获取类专用的日志器。"""
        class_name = self.__class__.__name__
        module_name = self.__class__.__module__
        return logger.bind(name=f"{module_name}.{class_name}")


__all__ = [
    "LoggerMixin",
    "logger",
    "setup_logging",
]
