"""
database models for the quote journal.
A single quotes table plus the pydantic value returned to callers.
"""

from datetime import datetime

from pydantic import BaseModel, Field
from sqlalchemy import Column, Integer, Float, Text
from sqlalchemy.orm import declarative_base

from utils.date_utils import format_medium_date, from_timestamp

Base = declarative_base()


class QuoteDB(Base):
    """database model for saved quotes"""
    __tablename__ = 'quotes'

    # AUTOINCREMENT: 删除后的 id 不会被重新分配
    id = Column(Integer, primary_key=True, autoincrement=True)
    text = Column(Text, nullable=False)
    author = Column(Text, nullable=False)
    # 秒级 Unix 时间戳（浮点），插入时由存储层写入
    date_created = Column(Float, nullable=False)

    __table_args__ = (
        {'sqlite_autoincrement': True},
    )

    def __repr__(self) -> str:
        return f"<QuoteDB id={self.id} author={self.author!r}>"


# Pydantic models for API
class Quote(BaseModel):
    """quote value model"""
    id: int = Field(..., description="语录ID")
    text: str = Field(..., description="语录正文")
    author: str = Field(..., description="作者")
    created_at: float = Field(..., description="创建时间 (Unix 时间戳)")

    @classmethod
    def from_db(cls, row: QuoteDB) -> "Quote":
        """从数据库行构建"""
        return cls(id=row.id, text=row.text, author=row.author, created_at=row.date_created)

    @property
    def created_datetime(self) -> datetime:
        return from_timestamp(self.created_at)

    @property
    def formatted_date(self) -> str:
        """中等长度日期，例如 "Jul 15, 2024" """
        return format_medium_date(self.created_at)
