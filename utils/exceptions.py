"""
统一异常定义模块
提供语录系统的异常类和错误处理机制
"""

from typing import Optional, Dict, Any


class QuoteJournalError(Exception):
    """语录系统基础异常类"""

    def __init__(self, message: str, error_code: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.context = context or {}

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"


class ConfigurationError(QuoteJournalError):
    """配置相关错误"""
    pass


class PersistenceError(QuoteJournalError):
    """数据库打开、建表或读写失败"""
    pass


class NotFoundError(QuoteJournalError):
    """目标语录不存在"""
    pass


class ValidationError(QuoteJournalError):
    """输入验证错误"""
    pass


class ExportError(QuoteJournalError):
    """语录图片导出错误"""
    pass


# 错误代码常量
class ErrorCodes:
    """错误代码常量"""

    # 配置错误
    CONFIG_INVALID_FORMAT = "CONFIG_002"
    CONFIG_LOAD_ERROR = "CONFIG_003"
    CONFIG_BACKUP_DISABLED = "CONFIG_005"

    # 数据库错误
    DB_CONNECTION_FAILED = "DB_001"
    DB_QUERY_FAILED = "DB_002"
    DB_WRITE_FAILED = "DB_003"
    DB_SCHEMA_FAILED = "DB_004"
    DB_BACKUP_FAILED = "DB_005"

    # 查找错误
    QUOTE_NOT_FOUND = "NF_001"

    # 验证错误
    VALIDATION_EMPTY_TEXT = "VAL_001"
    VALIDATION_EMPTY_AUTHOR = "VAL_002"

    # 导出错误
    EXPORT_RENDER_FAILED = "EXP_001"
    EXPORT_WRITE_FAILED = "EXP_002"


def create_error_response(error: QuoteJournalError) -> Dict[str, Any]:
    """创建标准化的错误响应"""
    return {
        "error": True,
        "error_code": error.error_code,
        "message": error.message,
        "context": error.context
    }
