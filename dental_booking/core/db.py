import asyncio
import logging
from collections.abc import AsyncGenerator, Awaitable, Callable
from urllib.parse import parse_qs, urlencode, urlparse, urlunparse

from sqlalchemy import event, text
from sqlalchemy.engine import ExceptionContext
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from dental_booking.core.config import settings

logger = logging.getLogger(__name__)

# Process-wide pool state, set once by init_engine() at startup.
engine: AsyncEngine | None = None
async_session_maker: async_sessionmaker[AsyncSession] | None = None


def to_async_url(database_url: str) -> str:
    """Map a plain postgresql/sqlite URL onto its async driver.

    asyncpg does not accept psycopg params like sslmode/channel_binding, so they are
    stripped; SSL is enabled via connect_args instead.
    """
    parsed = urlparse(database_url)
    if parsed.scheme in ("postgresql", "postgres"):
        query = parse_qs(parsed.query, keep_blank_values=True)
        query.pop("sslmode", None)
        query.pop("channel_binding", None)
        new_query = urlencode(query, doseq=True)
        return urlunparse(("postgresql+asyncpg", parsed.netloc, parsed.path, parsed.params, new_query, parsed.fragment))
    if parsed.scheme == "sqlite":
        return "sqlite+aiosqlite" + database_url[len("sqlite"):]
    return database_url


def to_sync_url(database_url: str) -> str:
    """Inverse of to_async_url, for Alembic's blocking engine."""
    parsed = urlparse(database_url)
    if parsed.scheme in ("postgresql+asyncpg", "postgres"):
        return urlunparse(("postgresql", parsed.netloc, parsed.path, parsed.params, parsed.query, parsed.fragment))
    if parsed.scheme == "sqlite+aiosqlite":
        return "sqlite" + database_url[len("sqlite+aiosqlite"):]
    return database_url


def _configure_sqlite(async_engine: AsyncEngine) -> None:
    """SQLite has no row locks: take the write lock when the transaction starts."""

    @event.listens_for(async_engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record) -> None:
        # stop the driver from emitting its own deferred BEGIN
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(async_engine.sync_engine, "begin")
    def _on_begin(conn) -> None:
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def init_engine(database_url: str | None = None) -> AsyncEngine:
    global engine, async_session_maker
    url = to_async_url(database_url or settings.database_url)
    if url.startswith("sqlite"):
        engine = create_async_engine(
            url,
            echo=False,
            connect_args={"timeout": 30},
        )
        _configure_sqlite(engine)
    else:
        engine = create_async_engine(
            url,
            echo=settings.env == "development",
            pool_pre_ping=True,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_timeout=settings.db_pool_timeout_seconds,
            pool_recycle=settings.db_pool_recycle_seconds,
            connect_args={
                "ssl": settings.db_ssl,
                "timeout": settings.db_pool_timeout_seconds,
            },
        )
    async_session_maker = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    logger.info("Database engine initialized (%s)", engine.url.render_as_string(hide_password=True))
    return engine


def _session_maker() -> async_sessionmaker[AsyncSession]:
    if async_session_maker is None:
        raise RuntimeError("Database engine is not initialized; call init_engine() first")
    return async_session_maker


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    async with _session_maker()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """Create tables if using create_all; prefer Alembic in production."""
    if engine is None:
        raise RuntimeError("Database engine is not initialized; call init_engine() first")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


async def ping() -> None:
    """Round-trip ``SELECT 1``; raises if the store is unreachable."""
    if engine is None:
        raise RuntimeError("Database engine is not initialized; call init_engine() first")
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))


class ConnectionSupervisor:
    """Re-probes the store on a fixed interval after the pool reports a lost connection.

    Runs as its own background task; request handling never waits on it.
    """

    def __init__(
        self,
        probe: Callable[[], Awaitable[None]] = ping,
        interval_seconds: float | None = None,
    ) -> None:
        self._probe = probe
        self._interval = settings.reconnect_interval_seconds if interval_seconds is None else interval_seconds
        self._disconnected = asyncio.Event()

    def watch(self, async_engine: AsyncEngine) -> None:
        event.listen(async_engine.sync_engine, "handle_error", self._on_error)

    def _on_error(self, context: ExceptionContext) -> None:
        if context.is_disconnect:
            logger.error("Database connection lost: %s", context.original_exception)
            self.notify_disconnect()

    def notify_disconnect(self) -> None:
        self._disconnected.set()

    async def reconnect(self) -> int:
        """Probe until it succeeds. Returns the number of attempts made."""
        attempt = 0
        while True:
            attempt += 1
            logger.info("Reconnecting to database (attempt %d)", attempt)
            try:
                await self._probe()
            except Exception as e:
                logger.error("Reconnect failed, retrying in %.1fs: %s", self._interval, e)
                await asyncio.sleep(self._interval)
            else:
                logger.info("Database reconnected after %d attempt(s)", attempt)
                return attempt

    async def run(self) -> None:
        while True:
            await self._disconnected.wait()
            await self.reconnect()
            # failed probes re-report the disconnect
            self._disconnected.clear()
