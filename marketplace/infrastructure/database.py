"""
Async SQLAlchemy engine and session factory.

Production runs on PostgreSQL through ``asyncpg``.  Transitions never hold
row locks; they rely on conditional ``UPDATE`` statements, so a small pool
with pre-ping is enough.
"""

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from marketplace.config import settings

engine = create_async_engine(
    settings.database_url,
    echo=settings.sql_echo,
    pool_size=settings.db_pool_size,
    max_overflow=settings.db_max_overflow,
    pool_pre_ping=True,
)

# expire_on_commit=False: services commit the transition before side
# channels and keep reading the same rows afterwards.
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    pass
