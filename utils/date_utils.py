"""
Date and time utilities for the quote journal.
"""

from datetime import datetime
from typing import Optional

from .logging_manager import logging_manager

date_utils_logger = logging_manager.get_logger("DateUtils")

# 中等长度日期格式用的英文月份缩写，不依赖系统 locale
_MONTH_ABBR = ["", "Jan", "Feb", "Mar", "Apr", "May", "Jun",
               "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]


def from_timestamp(timestamp: float) -> datetime:
    """Unix 时间戳转换为本地时间"""
    return datetime.fromtimestamp(timestamp)


def format_medium_date(timestamp: Optional[float]) -> str:
    """格式化为中等长度日期，例如 "Jul 15, 2024"

    无法转换的时间戳返回空字符串。
    """
    if timestamp is None:
        return ""
    try:
        dt = from_timestamp(timestamp)
    except (OverflowError, OSError, ValueError) as e:
        date_utils_logger.warning(f"Cannot format timestamp {timestamp!r}: {e}")
        return ""
    return f"{_MONTH_ABBR[dt.month]} {dt.day}, {dt.year}"
