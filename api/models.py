"""
API data models for the quote journal.
Pydantic models for request/response validation.
"""

from typing import Any, Dict, Optional, List
from pydantic import BaseModel, Field

from database.models import Quote


class QuoteResponse(BaseModel):
    """语录响应模型"""
    id: int = Field(..., description="语录ID")
    text: str = Field(..., description="语录正文")
    author: str = Field(..., description="作者")
    created_at: float = Field(..., description="创建时间 (Unix 时间戳)")
    formatted_date: str = Field("", description="创建日期，例如 Jul 15, 2024")

    @classmethod
    def from_quote(cls, quote: Quote) -> "QuoteResponse":
        return cls(
            id=quote.id,
            text=quote.text,
            author=quote.author,
            created_at=quote.created_at,
            formatted_date=quote.formatted_date
        )


class QuoteCreateRequest(BaseModel):
    """新增语录请求模型"""
    text: str = Field(..., description="语录正文")
    author: str = Field(..., description="作者")


class QuoteUpdateRequest(BaseModel):
    """编辑语录请求模型"""
    text: str = Field(..., description="语录正文")
    author: str = Field(..., description="作者")


class QuoteListResponse(BaseModel):
    """语录列表响应模型"""
    quotes: List[QuoteResponse]
    total: int


class RandomQuoteResponse(BaseModel):
    """今日语录响应模型，库为空时 quote 为 null"""
    quote: Optional[QuoteResponse] = None


class DeleteResponse(BaseModel):
    """删除响应模型"""
    deleted: bool = True
    id: int


class StatsResponse(BaseModel):
    """统计信息响应模型"""
    total_quotes: int
    db_path: str
    metrics: Dict[str, Dict[str, Any]] = {}


class ErrorResponse(BaseModel):
    """错误响应模型"""
    error: bool = True
    error_code: str
    message: str
    context: dict = Field(default_factory=dict)
