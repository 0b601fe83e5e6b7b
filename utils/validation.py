"""
Data validation utilities for the quote journal.
Entry-form rules applied by the API and CLI before calling the store.
"""

from typing import Optional, Tuple

from .exceptions import ValidationError, ErrorCodes
from .logging_manager import validation_logger


class QuoteValidator:
    """语录输入验证器"""

    @staticmethod
    def clean_text(value: Optional[str]) -> str:
        """去除首尾空白和换行"""
        if value is None:
            return ""
        return value.strip()

    @staticmethod
    def validate_quote_input(text: Optional[str], author: Optional[str]) -> Tuple[str, str]:
        """验证语录正文和作者，返回去除首尾空白后的值

        任一字段为空（或只有空白）时抛出 ValidationError。
        """
        cleaned_text = QuoteValidator.clean_text(text)
        cleaned_author = QuoteValidator.clean_text(author)

        if not cleaned_text:
            validation_logger.warning("Rejected quote input: empty text")
            raise ValidationError(
                "Quote text must not be empty",
                ErrorCodes.VALIDATION_EMPTY_TEXT,
                {"field": "text"}
            )

        if not cleaned_author:
            validation_logger.warning("Rejected quote input: empty author")
            raise ValidationError(
                "Quote author must not be empty",
                ErrorCodes.VALIDATION_EMPTY_AUTHOR,
                {"field": "author"}
            )

        return cleaned_text, cleaned_author

    @staticmethod
    def is_valid_quote_input(text: Optional[str], author: Optional[str]) -> bool:
        """保存按钮是否可用"""
        return bool(QuoteValidator.clean_text(text)) and bool(QuoteValidator.clean_text(author))
