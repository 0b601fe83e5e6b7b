"""
统一的日志管理模块
根日志器输出到标准输出和按大小轮转的日志文件
"""

import logging
import sys
import time
import functools
import threading
from pathlib import Path
from logging.handlers import RotatingFileHandler
from typing import Optional, Dict, Any, Callable
from dataclasses import dataclass
from collections import defaultdict

from .exceptions import QuoteJournalError, ErrorCodes
from .config_manager import config_manager
from .path_utils import resolve_project_path


@dataclass
class LogConfig:
    """日志配置，log_file 为 None 时只输出到控制台"""
    level: str = "INFO"
    format: str = "[%(levelname)s][%(asctime)s][%(filename)s:%(lineno)d] - %(message)s"
    date_format: str = "%Y-%m-%d %H:%M:%S"
    enable_console: bool = True
    log_file: Optional[Path] = None
    max_bytes: int = 10 * 1024 * 1024
    backup_count: int = 5


class LoggingManager:
    """统一的日志管理器（单例）"""

    _instance = None
    _lock = threading.Lock()

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if hasattr(self, '_initialized'):
            return
        self._initialized = True
        self._loggers: Dict[str, logging.Logger] = {}
        self.config = LogConfig()

    def configure(self, config: LogConfig = None):
        """替换根日志器的处理器"""
        if config:
            self.config = config

        root_logger = logging.getLogger()
        root_logger.setLevel(getattr(logging, self.config.level.upper(), logging.INFO))
        for handler in root_logger.handlers[:]:
            handler.close()
            root_logger.removeHandler(handler)

        formatter = logging.Formatter(self.config.format, datefmt=self.config.date_format)
        handlers = []
        if self.config.enable_console:
            handlers.append(logging.StreamHandler(sys.stdout))
        if self.config.log_file is not None:
            Path(self.config.log_file).parent.mkdir(parents=True, exist_ok=True)
            handlers.append(RotatingFileHandler(
                filename=self.config.log_file,
                maxBytes=self.config.max_bytes,
                backupCount=self.config.backup_count,
                encoding="utf-8"
            ))
        for handler in handlers:
            handler.setFormatter(formatter)
            root_logger.addHandler(handler)

    def configure_from_config_file(self):
        """按 logging_config 配置根日志器和各模块的级别"""
        try:
            logging_config = config_manager.get_logging_config()
            file_config = logging_config.file_config
            rotation = file_config.rotation

            log_file = None
            if file_config.enabled:
                log_file = resolve_project_path(file_config.directory) / file_config.filename

            self.configure(LogConfig(
                level=logging_config.level,
                format=logging_config.format,
                date_format=logging_config.date_format,
                enable_console=logging_config.console_config.enabled,
                log_file=log_file,
                max_bytes=int(rotation.get('max_bytes_mb', 10) * 1024 * 1024),
                backup_count=rotation.get('backup_count', 5)
            ))

            for module_name, module_config in logging_config.modules.items():
                level = module_config.level if module_config.enabled else "CRITICAL"
                self.get_logger(module_name).setLevel(getattr(logging, level.upper(), logging.INFO))

            return logging_config

        except (OSError, ValueError, AttributeError, TypeError) as e:
            raise QuoteJournalError(
                f"Failed to configure logging from config file: {str(e)}",
                ErrorCodes.CONFIG_INVALID_FORMAT
            ) from e

    def get_logger(self, name: str = None) -> logging.Logger:
        """获取日志记录器"""
        name = name or "quotejournal"
        if name not in self._loggers:
            self._loggers[name] = logging.getLogger(name)
        return self._loggers[name]


class LogContext:
    """记录一次操作的开始、耗时和失败；异常照常抛出"""

    def __init__(self, module: str, operation: str = None,
                 quote_id: Optional[int] = None,
                 extra_context: Dict[str, Any] = None):
        self.module = module
        self.operation = operation
        self.quote_id = quote_id
        self.extra_context = extra_context or {}
        self.start_time = None
        self.logger = logging_manager.get_logger(module)

    def __enter__(self):
        self.start_time = time.time()
        self.logger.debug(f"[{self.context}] Starting operation")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        duration = time.time() - self.start_time
        if exc_type is None:
            self.logger.debug(f"[{self.context}] Operation completed in {duration:.3f}s")
        else:
            self.logger.error(f"[{self.context}] Operation failed in {duration:.3f}s: {exc_val}")

    @property
    def context(self) -> str:
        parts = [self.module]
        if self.operation:
            parts.append(self.operation)
        if self.quote_id is not None:
            parts.append(f"ID:{self.quote_id}")
        parts.extend(f"{key}:{value}" for key, value in self.extra_context.items())
        return ".".join(parts)


def log_execution(module: str, operation: str = None):
    """日志装饰器"""
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            with LogContext(module, operation or func.__name__,
                            quote_id=kwargs.get('quote_id')):
                return func(*args, **kwargs)
        return wrapper

    return decorator


class MetricsLogger:
    """进程内计数器和耗时统计"""

    def __init__(self, module: str):
        self.module = module
        self._counters = defaultdict(int)
        self._timings = defaultdict(lambda: {"count": 0, "total": 0.0})
        self._lock = threading.Lock()

    def increment(self, metric_name: str, value: int = 1):
        with self._lock:
            self._counters[metric_name] += value
            total = self._counters[metric_name]
        logging_manager.get_logger(self.module).debug(f"[Metrics] {self.module}.{metric_name}: {total}")

    def timing(self, metric_name: str, duration: float):
        with self._lock:
            entry = self._timings[metric_name]
            entry["count"] += 1
            entry["total"] += duration

    def snapshot(self) -> Dict[str, Any]:
        """计数器原样返回，耗时给出次数和平均值"""
        with self._lock:
            result: Dict[str, Any] = dict(self._counters)
            for name, entry in self._timings.items():
                result[f"{name}_count"] = entry["count"]
                result[f"{name}_avg_seconds"] = round(entry["total"] / entry["count"], 6)
        return result


# 全局日志管理器实例
logging_manager = LoggingManager()
logger = logging_manager.get_logger()

database_metrics = MetricsLogger("Database")
api_metrics = MetricsLogger("API")
export_metrics = MetricsLogger("Exporter")


def metrics_snapshot() -> Dict[str, Dict[str, Any]]:
    """所有模块指标的快照"""
    return {m.module: m.snapshot() for m in (database_metrics, api_metrics, export_metrics)}


class ModuleLoggers:
    """模块专用日志器集合"""

    Database = logging_manager.get_logger("Database")
    API = logging_manager.get_logger("API")
    Exporter = logging_manager.get_logger("Exporter")
    Main = logging_manager.get_logger("Main")
    Config = logging_manager.get_logger("Config")
    Validation = logging_manager.get_logger("Validation")


db_logger = ModuleLoggers.Database
api_logger = ModuleLoggers.API
export_logger = ModuleLoggers.Exporter
main_logger = ModuleLoggers.Main
config_logger = ModuleLoggers.Config
validation_logger = ModuleLoggers.Validation


def initialize_logging(use_config_file: bool = True) -> bool:
    """初始化日志系统，配置文件不可用时退回仅控制台输出"""
    try:
        if use_config_file:
            logging_manager.configure_from_config_file()
        else:
            logging_manager.configure()
        logger.debug("Logging system initialized successfully")
        return True
    except QuoteJournalError as e:
        print(f"Failed to initialize logging: {e}", file=sys.stderr)
        print("Falling back to console-only logging...", file=sys.stderr)
        logging_manager.configure(LogConfig())
        logger.info("Logging system initialized with fallback config")
        return True


# 自动初始化（使用配置文件）
initialize_logging(use_config_file=True)
