"""
工具模块包
提供项目所需的通用工具和功能
"""

# 导出核心工具
from .config_manager import (
    config_manager,
    UnifiedConfigManager,
    LoggingConfig,
    LoggingModuleConfig,
    DatabaseConfig,
    ApiConfig,
    ExportConfig
)
from .exceptions import (
    QuoteJournalError,
    ConfigurationError,
    PersistenceError,
    NotFoundError,
    ValidationError,
    ExportError,
    ErrorCodes,
    create_error_response
)
from .logging_manager import (
    LogContext,
    log_execution,
    MetricsLogger,
    logging_manager,
    logger,
    database_metrics,
    api_metrics,
    export_metrics,
    metrics_snapshot,
    LogConfig,
    initialize_logging,
    ModuleLoggers,
    db_logger,
    api_logger,
    export_logger,
    main_logger,
    config_logger,
    validation_logger
)
from .path_utils import BASE_DIR, CONFIG_DIR, LOG_DIR, resolve_project_path
from .date_utils import format_medium_date, from_timestamp
from .validation import QuoteValidator

# 版本信息
__version__ = "1.0.0"

__all__ = [
    # 配置管理
    "config_manager",
    "UnifiedConfigManager",
    "LoggingConfig",
    "LoggingModuleConfig",
    "DatabaseConfig",
    "ApiConfig",
    "ExportConfig",

    # 异常处理
    "QuoteJournalError",
    "ConfigurationError",
    "PersistenceError",
    "NotFoundError",
    "ValidationError",
    "ExportError",
    "ErrorCodes",
    "create_error_response",

    # 日志工具
    "LogContext",
    "log_execution",
    "MetricsLogger",
    "logging_manager",
    "logger",
    "database_metrics",
    "api_metrics",
    "export_metrics",
    "metrics_snapshot",
    "LogConfig",
    "initialize_logging",
    "ModuleLoggers",
    "db_logger",
    "api_logger",
    "export_logger",
    "main_logger",
    "config_logger",
    "validation_logger",

    # 路径工具
    "BASE_DIR",
    "CONFIG_DIR",
    "LOG_DIR",
    "resolve_project_path",

    # 日期工具
    "format_medium_date",
    "from_timestamp",

    # 验证工具
    "QuoteValidator",
]
