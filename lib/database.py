# =============================================================================
# lib/database.py - PostgreSQL Connection Pool
# =============================================================================
# Builds the application's connection pool from environment configuration.
#
# Two configuration forms are supported:
# 1. DATABASE_URL - a single connection string. When NODE_ENV=production the
#    server certificate is not verified (managed Postgres with self-signed certs).
# 2. HOST, USER, PASSWORD, DATABASE (+ optional PORT, default 5432).
#
# Connection strings written for libpq are adapted for asyncpg: sslmode
# becomes ssl, and parameters asyncpg cannot accept (e.g. channel_binding)
# are dropped with a warning.
#
# The pool is an SQLAlchemy AsyncEngine over asyncpg. Creating it does not
# open a connection; use Database.ping() to check the server is reachable.
#
# Usage:
#   database = create_database(settings)
#   await database.ping()
#   async with database.session() as session:
#       await session.execute(text("SELECT 1"))
# =============================================================================

from __future__ import annotations

import logging
import ssl
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, Optional

from sqlalchemy import text
from sqlalchemy.engine import URL, make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from app.config import ConfigCheck, Settings
from app.exceptions import DatabaseConfigError, DatabasePingError

logger = logging.getLogger(__name__)

DEFAULT_DB_PORT = 5432
DRIVER_NAME = "postgresql+asyncpg"

DISCRETE_ENV_VARS = ("HOST", "USER", "PASSWORD", "DATABASE")

# Accepted by libpq in connection strings but not by asyncpg.connect()
LIBPQ_ONLY_PARAMS = frozenset({
    "channel_binding",
    "gssencmode",
    "gsslib",
    "krbsrvname",
    "requiressl",
    "sslcompression",
    "sslcrl",
    "sslcrldir",
    "sslsni",
    "ssl_min_protocol_version",
    "ssl_max_protocol_version",
    "requirepeer",
    "keepalives",
    "keepalives_idle",
    "keepalives_interval",
    "keepalives_count",
    "tcp_user_timeout",
    "replication",
})


# =============================================================================
# Configuration
# =============================================================================

def check_database_config(settings: Settings) -> ConfigCheck:
    """
    Check that at least one complete connection form is configured.

    Passes if DATABASE_URL is set, otherwise reports which of
    HOST, USER, PASSWORD, DATABASE are missing.
    """
    if settings.DATABASE_URL:
        return ConfigCheck()

    missing = [name for name in DISCRETE_ENV_VARS if not getattr(settings, name)]
    return ConfigCheck(
        missing=missing,
        hint="Please set DATABASE_URL or HOST, USER, PASSWORD, DATABASE",
    )


def _normalize_url(database_url: str) -> URL:
    """
    Point a plain postgres:// URL at the asyncpg driver.

    asyncpg does not understand libpq's sslmode parameter, so it is
    passed on as ssl=<mode> instead. Other libpq-only parameters
    (channel_binding, gssencmode, ...) are dropped; asyncpg would
    reject them on the first connect.
    """
    url = make_url(database_url)
    if url.drivername in ("postgres", "postgresql"):
        url = url.set(drivername=DRIVER_NAME)

    query = dict(url.query)
    if "sslmode" in query:
        query["ssl"] = query.pop("sslmode")

    dropped = sorted(name for name in query if name in LIBPQ_ONLY_PARAMS)
    if dropped:
        logger.warning(f"Ignoring libpq-only connection parameters: {', '.join(dropped)}")
        for name in dropped:
            del query[name]

    if query != dict(url.query):
        url = url.set(query=query)

    return url


@dataclass(frozen=True)
class PoolConfig:
    """
    Immutable pool configuration, read once at startup.

    Either `url` is set (connection-string form) or the discrete fields are.
    """
    url: Optional[str] = None
    ssl_relaxed: bool = False
    host: Optional[str] = None
    port: int = DEFAULT_DB_PORT
    user: Optional[str] = None
    password: Optional[str] = None
    database: Optional[str] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "PoolConfig":
        """
        Resolve the pool configuration from settings.

        Raises:
            DatabaseConfigError: If neither connection form is complete
        """
        if settings.DATABASE_URL:
            logger.info("Using DATABASE_URL for database connection")
            return cls(url=settings.DATABASE_URL, ssl_relaxed=settings.is_production)

        check = check_database_config(settings)
        if not check.ok:
            raise DatabaseConfigError(check.missing)

        logger.warning("DATABASE_URL not found, falling back to individual parameters")

        config = cls(
            host=settings.HOST,
            port=settings.PORT or DEFAULT_DB_PORT,
            user=settings.USER,
            password=settings.PASSWORD,
            database=settings.DATABASE,
        )
        logger.info(f"Connecting to DB with individual parameters: {config.describe()}")
        return config

    @property
    def uses_connection_string(self) -> bool:
        return self.url is not None

    def to_url(self) -> URL:
        """Build the SQLAlchemy URL for the asyncpg driver."""
        if self.url is not None:
            return _normalize_url(self.url)

        return URL.create(
            DRIVER_NAME,
            username=self.user,
            password=self.password,
            host=self.host,
            port=self.port,
            database=self.database,
        )

    def connect_args(self) -> dict[str, Any]:
        """Driver arguments; a non-verifying SSL context when TLS is relaxed."""
        if not self.ssl_relaxed:
            return {}

        context = ssl.create_default_context()
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
        return {"ssl": context}

    def describe(self) -> dict[str, Any]:
        """Connection details safe for logs (never includes the password)."""
        if self.url is not None:
            return {
                "url": self.to_url().render_as_string(hide_password=True),
                "ssl_relaxed": self.ssl_relaxed,
            }
        return {
            "host": self.host,
            "port": self.port,
            "user": self.user,
            "database": self.database,
        }


# =============================================================================
# Database Handle
# =============================================================================

class Database:
    """
    Query-capable handle around the connection pool.

    One instance is created by the entry point and shared through
    app.state; tests construct their own.
    """

    def __init__(self, engine: AsyncEngine):
        self.engine = engine
        self.session_maker = async_sessionmaker(
            bind=engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    @classmethod
    def from_config(cls, config: PoolConfig, echo: bool = False) -> "Database":
        """Create the engine (pool) for a resolved configuration."""
        engine = create_async_engine(
            config.to_url(),
            echo=echo,
            connect_args=config.connect_args(),
            pool_pre_ping=True,
        )
        return cls(engine)

    async def ping(self) -> None:
        """
        Run a trivial query to check the database is reachable.

        Raises:
            DatabasePingError: Wrapping the original error message
        """
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except Exception as e:
            error_message = str(e) or "Unknown database error"
            logger.error(f"Database ping failed: {error_message}")
            raise DatabasePingError(error_message) from e

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """
        Async context manager for database sessions.

        Commits on success, rolls back and re-raises on error.
        """
        async with self.session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def dispose(self) -> None:
        """Close all pooled connections."""
        await self.engine.dispose()
        logger.info("Database pool disposed")


def create_database(settings: Settings) -> Database:
    """
    Build the Database handle from settings.

    Raises:
        DatabaseConfigError: If neither connection form is complete.
            No pool is created in that case.
    """
    config = PoolConfig.from_settings(settings)
    return Database.from_config(config)
