# app/core/db.py

import logging
import os
import ssl
from typing import AsyncGenerator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import NullPool

from app.core import config

logger = logging.getLogger(__name__)

# =====================================================
# BASE
# =====================================================
Base = declarative_base()

# =====================================================
# CONNECTION CONFIG
# =====================================================
def _postgres_options() -> tuple[dict, dict]:
    ssl_ctx = ssl.create_default_context()
    if not config.DB_SSL_VERIFY:
        ssl_ctx.check_hostname = False
        ssl_ctx.verify_mode = ssl.CERT_NONE

    connect_args = {
        "ssl": ssl_ctx,
        # Disable prepared statements (asyncpg + pgbouncer stability)
        "statement_cache_size": 0,
        "prepared_statement_cache_size": 0,
    }
    pool_args = {
        "pool_size": config.DB_POOL_SIZE,
        "max_overflow": config.DB_MAX_OVERFLOW,
        "pool_timeout": config.DB_POOL_TIMEOUT,
        "pool_pre_ping": True,
    }
    return connect_args, pool_args


def _sqlite_options() -> tuple[dict, dict]:
    folder = os.path.dirname(os.path.abspath(config.SQLITE_PATH))
    os.makedirs(folder, exist_ok=True)
    # aiosqlite connections are bound to the loop that opened them
    return {"check_same_thread": False}, {"poolclass": NullPool}


if config.DB_TYPE == "postgres":
    connect_args, pool_args = _postgres_options()
else:
    connect_args, pool_args = _sqlite_options()

# =====================================================
# ENGINE
# =====================================================
engine = create_async_engine(
    config.DATABASE_URL,
    echo=False,                      # NEVER enable in prod
    echo_pool=config.DB_ECHO_POOL,   # debugging only
    connect_args=connect_args,
    **pool_args,
)

if config.DB_TYPE == "sqlite":
    @event.listens_for(engine.sync_engine, "connect")
    def _sqlite_pragmas(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

# =====================================================
# SESSION
# =====================================================
AsyncSessionLocal = sessionmaker(
    bind=engine,
    class_=AsyncSession,
    autoflush=False,
    autocommit=False,
    expire_on_commit=False,
)

# =====================================================
# DEPENDENCY
# =====================================================
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        yield session

# =====================================================
# MODEL IMPORT
# =====================================================
import app.models  # noqa

# =====================================================
# DEV ONLY: AUTO CREATE TABLES
# =====================================================
async def init_models():
    if config.APP_ENV != "development":
        raise RuntimeError("init_models() is forbidden outside development")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.debug("Tables ready: %s", ", ".join(sorted(Base.metadata.tables)))


async def dispose_engine():
    await engine.dispose()
