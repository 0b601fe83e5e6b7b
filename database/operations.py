"""
database operations for the quote journal.

``QuoteStore`` is the only component that touches the quotes table. It is
constructed once per process (or per test, pointed at an isolated file) and
handed to every consumer explicitly.

Concurrency contract: every operation runs under a single re-entrant lock.
The engine holds exactly one SQLite connection, so reads take the same lock
as writes; callers on several threads are serialized, never interleaved.
"""

import random
import threading
import time
from typing import Callable, List, Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import SQLAlchemyError

from utils import db_logger, database_metrics, LogContext, PersistenceError, NotFoundError, ErrorCodes

from .connection import DatabaseManager
from .models import Quote, QuoteDB

# sqlite3 在绑定含孤立代理项的字符串时直接抛出 UnicodeEncodeError
DB_ERRORS = (SQLAlchemyError, UnicodeEncodeError)


class QuoteStore:
    """quote persistence facade over one DatabaseManager"""

    def __init__(self, db_manager: DatabaseManager,
                 clock: Callable[[], float] = time.time,
                 rng: Optional[random.Random] = None):
        self.db = db_manager
        self._clock = clock
        self._rng = rng or random.Random()
        self._lock = threading.RLock()
        self._last_created_at = 0.0

        with self._lock:
            self.db.initialize()
            self.db.create_tables()
            self._last_created_at = self._load_latest_timestamp()

        db_logger.info(f"[QuoteStore] Store ready at {self.db.db_path}")

    @property
    def db_path(self) -> str:
        return self.db.db_path

    def _load_latest_timestamp(self) -> float:
        try:
            with self.db.get_session() as session:
                latest = session.execute(select(func.max(QuoteDB.date_created))).scalar()
        except DB_ERRORS as e:
            raise PersistenceError(
                f"Failed to read latest timestamp: {e}",
                ErrorCodes.DB_QUERY_FAILED
            ) from e
        return latest or 0.0

    def _next_timestamp(self) -> float:
        # 时钟回拨时沿用上一次的时间戳，保证插入顺序上不递减
        return max(self._clock(), self._last_created_at)

    # === Write Operations ===

    def insert_quote(self, text: str, author: str) -> int:
        """插入语录，返回新生成的 id"""
        with self._lock, LogContext("Database", "insert_quote"):
            created_at = self._next_timestamp()
            try:
                with self.db.get_session() as session:
                    row = QuoteDB(text=text, author=author, date_created=created_at)
                    session.add(row)
                    session.commit()
                    quote_id = row.id
            except DB_ERRORS as e:
                db_logger.error(f"[QuoteStore] Failed to insert quote: {e}")
                database_metrics.increment("insert_failed")
                raise PersistenceError(
                    f"Failed to insert quote: {e}",
                    ErrorCodes.DB_WRITE_FAILED
                ) from e

            self._last_created_at = created_at
            database_metrics.increment("inserted")
            db_logger.info(f"[QuoteStore] Inserted quote {quote_id}")
            return quote_id

    def update_quote(self, quote: Quote) -> Quote:
        """替换语录的正文和作者，id 与创建时间保持不变"""
        with self._lock, LogContext("Database", "update_quote", quote_id=quote.id):
            try:
                with self.db.get_session() as session:
                    result = session.execute(
                        update(QuoteDB)
                        .where(QuoteDB.id == quote.id)
                        .values(text=quote.text, author=quote.author)
                    )
                    if result.rowcount == 0:
                        session.rollback()
                        raise NotFoundError(
                            f"Quote {quote.id} does not exist",
                            ErrorCodes.QUOTE_NOT_FOUND,
                            {"id": quote.id}
                        )
                    session.commit()
                    row = session.get(QuoteDB, quote.id)
                    stored = Quote.from_db(row)
            except DB_ERRORS as e:
                db_logger.error(f"[QuoteStore] Failed to update quote {quote.id}: {e}")
                database_metrics.increment("update_failed")
                raise PersistenceError(
                    f"Failed to update quote {quote.id}: {e}",
                    ErrorCodes.DB_WRITE_FAILED,
                    {"id": quote.id}
                ) from e

            database_metrics.increment("updated")
            db_logger.info(f"[QuoteStore] Updated quote {quote.id}")
            return stored

    def delete_quote(self, quote_id: int) -> bool:
        """删除语录；id 不存在时为空操作，同样返回 True"""
        with self._lock, LogContext("Database", "delete_quote", quote_id=quote_id):
            try:
                with self.db.get_session() as session:
                    result = session.execute(delete(QuoteDB).where(QuoteDB.id == quote_id))
                    session.commit()
                    removed = result.rowcount
            except DB_ERRORS as e:
                db_logger.error(f"[QuoteStore] Failed to delete quote {quote_id}: {e}")
                database_metrics.increment("delete_failed")
                raise PersistenceError(
                    f"Failed to delete quote {quote_id}: {e}",
                    ErrorCodes.DB_WRITE_FAILED,
                    {"id": quote_id}
                ) from e

            if removed:
                database_metrics.increment("deleted")
                db_logger.info(f"[QuoteStore] Deleted quote {quote_id}")
            else:
                db_logger.debug(f"[QuoteStore] Delete of missing quote {quote_id} ignored")
            return True

    # === Read Operations ===

    def get_all_quotes(self) -> List[Quote]:
        """按创建时间倒序返回全部语录"""
        with self._lock:
            try:
                with self.db.get_session() as session:
                    stmt = select(QuoteDB).order_by(QuoteDB.date_created.desc(), QuoteDB.id.desc())
                    rows = session.execute(stmt).scalars().all()
                    return [Quote.from_db(row) for row in rows]
            except DB_ERRORS as e:
                db_logger.error(f"[QuoteStore] Failed to list quotes: {e}")
                raise PersistenceError(
                    f"Failed to list quotes: {e}",
                    ErrorCodes.DB_QUERY_FAILED
                ) from e

    def get_random_quote(self) -> Optional[Quote]:
        """均匀随机返回一条语录，表为空时返回 None"""
        with self._lock:
            try:
                with self.db.get_session() as session:
                    ids = session.execute(select(QuoteDB.id)).scalars().all()
                    if not ids:
                        return None
                    row = session.get(QuoteDB, self._rng.choice(ids))
                    return Quote.from_db(row)
            except DB_ERRORS as e:
                db_logger.error(f"[QuoteStore] Failed to pick random quote: {e}")
                raise PersistenceError(
                    f"Failed to pick random quote: {e}",
                    ErrorCodes.DB_QUERY_FAILED
                ) from e

    def get_quote(self, quote_id: int) -> Optional[Quote]:
        with self._lock:
            try:
                with self.db.get_session() as session:
                    row = session.get(QuoteDB, quote_id)
                    return Quote.from_db(row) if row is not None else None
            except DB_ERRORS as e:
                db_logger.error(f"[QuoteStore] Failed to get quote {quote_id}: {e}")
                raise PersistenceError(
                    f"Failed to get quote {quote_id}: {e}",
                    ErrorCodes.DB_QUERY_FAILED,
                    {"id": quote_id}
                ) from e

    def count_quotes(self) -> int:
        with self._lock:
            try:
                with self.db.get_session() as session:
                    return session.execute(select(func.count()).select_from(QuoteDB)).scalar_one()
            except DB_ERRORS as e:
                db_logger.error(f"[QuoteStore] Failed to count quotes: {e}")
                raise PersistenceError(
                    f"Failed to count quotes: {e}",
                    ErrorCodes.DB_QUERY_FAILED
                ) from e

    # === Maintenance ===

    def backup(self, backup_path: Optional[str] = None):
        """在锁内复制数据库文件"""
        with self._lock:
            return self.db.backup_database(backup_path)

    def close(self):
        """释放数据库连接"""
        with self._lock:
            self.db.close()
        db_logger.info("[QuoteStore] Store closed")

    def __enter__(self) -> "QuoteStore":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


def open_store(db_path: str, **kwargs) -> QuoteStore:
    """按路径打开（并初始化）一个语录存储"""
    return QuoteStore(DatabaseManager(db_path), **kwargs)
