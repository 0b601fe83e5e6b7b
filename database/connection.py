"""
Database connection management.
Owns the SQLAlchemy engine for one file-backed SQLite database.
"""

import os
import shutil
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from utils import db_logger, PersistenceError, ErrorCodes

MEMORY_DB = ":memory:"


class DatabaseManager:
    """数据库管理器"""

    def __init__(self, db_path: Union[str, Path]):
        self.db_path = str(db_path)
        self.sync_engine = None
        self.SessionLocal = None
        db_logger.info(f"[Database] Using database path: {self.db_path}")

    @property
    def is_memory(self) -> bool:
        return self.db_path == MEMORY_DB

    @property
    def is_initialized(self) -> bool:
        return self.SessionLocal is not None

    def initialize(self):
        """初始化数据库连接"""
        if self.is_initialized:
            return

        try:
            if self.is_memory:
                url = "sqlite://"
            else:
                # 确保数据目录存在
                parent = os.path.dirname(os.path.abspath(self.db_path))
                os.makedirs(parent, exist_ok=True)
                url = f"sqlite:///{self.db_path}"

            # 单连接引擎：所有访问共享同一个 SQLite 连接，由存储层的锁串行化
            self.sync_engine = create_engine(
                url,
                poolclass=StaticPool,
                connect_args={"check_same_thread": False}
            )

            # 创建会话工厂
            self.SessionLocal = sessionmaker(
                autocommit=False,
                autoflush=False,
                expire_on_commit=False,
                bind=self.sync_engine
            )

            db_logger.info("[Database] Database connection initialized successfully")

        except (OSError, SQLAlchemyError) as e:
            db_logger.error(f"[Database] Failed to initialize database: {e}")
            self.sync_engine = None
            self.SessionLocal = None
            raise PersistenceError(
                f"Failed to open database at {self.db_path}: {e}",
                ErrorCodes.DB_CONNECTION_FAILED,
                {"db_path": self.db_path}
            ) from e

    def create_tables(self):
        """创建数据库表（幂等）"""
        if not self.is_initialized:
            raise PersistenceError("Database not initialized", ErrorCodes.DB_CONNECTION_FAILED)

        try:
            from .models import Base

            Base.metadata.create_all(bind=self.sync_engine)
            db_logger.info("[Database] Database tables ensured")

        except SQLAlchemyError as e:
            db_logger.error(f"[Database] Failed to create tables: {e}")
            raise PersistenceError(
                f"Failed to create schema: {e}",
                ErrorCodes.DB_SCHEMA_FAILED,
                {"db_path": self.db_path}
            ) from e

    def get_session(self) -> Session:
        """获取同步数据库会话"""
        if not self.SessionLocal:
            raise PersistenceError("Database not initialized", ErrorCodes.DB_CONNECTION_FAILED)
        return self.SessionLocal()

    def backup_database(self, backup_path: Optional[str] = None) -> Path:
        """备份数据库文件，返回备份路径"""
        if self.is_memory:
            raise PersistenceError("Cannot back up an in-memory database", ErrorCodes.DB_BACKUP_FAILED)

        try:
            if not backup_path:
                timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
                backup_dir = os.path.join(os.path.dirname(os.path.abspath(self.db_path)), "backups")
                os.makedirs(backup_dir, exist_ok=True)
                backup_path = os.path.join(backup_dir, f"quotes_backup_{timestamp}.db")
            else:
                os.makedirs(os.path.dirname(os.path.abspath(backup_path)), exist_ok=True)

            shutil.copy2(self.db_path, backup_path)
            db_logger.info(f"[Database] Database backed up to: {backup_path}")
            return Path(backup_path)

        except OSError as e:
            db_logger.error(f"[Database] Failed to backup database: {e}")
            raise PersistenceError(
                f"Failed to back up database: {e}",
                ErrorCodes.DB_BACKUP_FAILED,
                {"db_path": self.db_path}
            ) from e

    def close(self):
        """关闭数据库连接"""
        if self.sync_engine is None:
            return
        try:
            self.sync_engine.dispose()
            db_logger.info("[Database] Database connections closed")
        except SQLAlchemyError as e:
            db_logger.error(f"[Database] Error closing database connections: {e}")
        finally:
            self.sync_engine = None
            self.SessionLocal = None
