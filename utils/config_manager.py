"""
配置管理模块
合并 config 目录下的 JSON 文件，并提供类型化的分区配置
"""

import json
import logging
from typing import Any, Optional, Dict, List
from dataclasses import dataclass, field, fields
from pathlib import Path

from .exceptions import ConfigurationError, ErrorCodes
from .path_utils import CONFIG_DIR

config_logger = logging.getLogger("Config")


@dataclass
class LoggingModuleConfig:
    """模块日志配置"""
    level: str = "INFO"
    enabled: bool = True

@dataclass
class FileLoggingConfig:
    """文件日志配置"""
    enabled: bool = True
    directory: str = "log"
    filename: str = "sys.log"
    rotation: Dict[str, Any] = field(default_factory=dict)

@dataclass
class ConsoleLoggingConfig:
    enabled: bool = True

@dataclass
class LoggingConfig:
    """完整日志配置"""
    level: str = "INFO"
    format: str = "[%(levelname)s][%(asctime)s][%(filename)s:%(lineno)d] - %(message)s"
    date_format: str = "%Y-%m-%d %H:%M:%S"
    file_config: FileLoggingConfig = field(default_factory=FileLoggingConfig)
    console_config: ConsoleLoggingConfig = field(default_factory=ConsoleLoggingConfig)
    modules: Dict[str, LoggingModuleConfig] = field(default_factory=dict)

@dataclass
class DatabaseConfig:
    """数据库配置"""
    db_path: str = "data/quotes.db"
    backup_enabled: bool = True

@dataclass
class ApiConfig:
    """API配置"""
    host: str = "0.0.0.0"
    port: int = 8000
    reload: bool = False
    cors_origins: List[str] = field(default_factory=lambda: ["*"])

@dataclass
class ExportConfig:
    """语录卡片导出配置"""
    width: int = 400
    height: int = 500
    output_dir: str = "exports"
    font_path: Optional[str] = None
    font_size: int = 40
    author_font_size: int = 26
    padding: int = 32
    background: str = "#FFFFFF"
    text_color: str = "#111111"
    author_color: str = "#777777"


def _build(cls, data: Any, section: str):
    """用配置字典构造数据类，未知键忽略，缺失键取默认值"""
    if data is None:
        return cls()
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Configuration section '{section}' must be a JSON object",
            ErrorCodes.CONFIG_INVALID_FORMAT
        )
    known = {f.name for f in fields(cls)}
    return cls(**{k: v for k, v in data.items() if k in known})


class UnifiedConfigManager:
    """配置管理器

    按文件名顺序加载目录中的 *.json，后加载的文件覆盖同名顶层键。
    目录不存在时全部使用内置默认值。
    """

    def __init__(self, config_dir: Optional[str] = None):
        self._config_dir = Path(config_dir) if config_dir else CONFIG_DIR
        self._config_data: Dict[str, Any] = {}
        self._typed_cache: Dict[str, Any] = {}
        self.reload_config()

    @property
    def config_dir(self) -> Path:
        return self._config_dir

    def reload_config(self) -> None:
        """重新读取配置目录并清空类型化缓存"""
        self._typed_cache.clear()
        if not self._config_dir.is_dir():
            config_logger.warning(f"Configuration directory not found, using defaults: {self._config_dir}")
            self._config_data = {}
            return

        merged: Dict[str, Any] = {}
        config_files = sorted(self._config_dir.glob('*.json'))
        for config_file in config_files:
            try:
                with open(config_file, 'r', encoding='utf-8') as f:
                    data = json.load(f)
            except json.JSONDecodeError as e:
                raise ConfigurationError(
                    f"Invalid JSON in configuration file {config_file.name}: {e}",
                    ErrorCodes.CONFIG_INVALID_FORMAT
                ) from e
            except OSError as e:
                raise ConfigurationError(
                    f"Failed to read configuration file {config_file.name}: {e}",
                    ErrorCodes.CONFIG_LOAD_ERROR
                ) from e

            if not isinstance(data, dict):
                raise ConfigurationError(
                    f"Configuration file {config_file.name} must contain a JSON object",
                    ErrorCodes.CONFIG_INVALID_FORMAT
                )
            merged.update(data)

        self._config_data = merged
        config_logger.info(f"Configuration loaded from {len(config_files)} files in {self._config_dir}")

    def _typed(self, section: str, cls):
        if section not in self._typed_cache:
            self._typed_cache[section] = _build(cls, self._config_data.get(section), section)
        return self._typed_cache[section]

    def get_logging_config(self) -> LoggingConfig:
        if 'logging_config' not in self._typed_cache:
            data = self._config_data.get('logging_config') or {}
            config = _build(LoggingConfig, data, 'logging_config')
            config.file_config = _build(FileLoggingConfig, data.get('file_config'), 'file_config')
            config.console_config = _build(ConsoleLoggingConfig, data.get('console_config'), 'console_config')
            config.modules = {
                name: _build(LoggingModuleConfig, module_data, name)
                for name, module_data in (data.get('modules') or {}).items()
            }
            self._typed_cache['logging_config'] = config
        return self._typed_cache['logging_config']

    def get_database_config(self) -> DatabaseConfig:
        return self._typed('database_config', DatabaseConfig)

    def get_api_config(self) -> ApiConfig:
        return self._typed('api_config', ApiConfig)

    def get_export_config(self) -> ExportConfig:
        return self._typed('export_config', ExportConfig)


# 全局配置实例
config_manager = UnifiedConfigManager()
