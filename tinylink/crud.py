import asyncio
import logging
from datetime import datetime, tzinfo
from typing import Awaitable, Callable, List, Optional, TypeVar
from zoneinfo import ZoneInfo

from sqlalchemy import select, update, delete
from sqlalchemy.exc import DBAPIError, IntegrityError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from .errors import DuplicateCodeError, TransientStoreError
from .models import Link

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Postgres unique_violation SQLSTATE
UNIQUE_VIOLATION = "23505"

def is_unique_violation(exc: IntegrityError) -> bool:
    orig = exc.orig
    if getattr(orig, "sqlstate", None) == UNIQUE_VIOLATION or getattr(orig, "pgcode", None) == UNIQUE_VIOLATION:
        return True
    message = str(orig).lower()
    return "duplicate key" in message or "unique constraint" in message

class LinkStore:
    """Link persistence. Each method is one atomic request to the store."""

    def __init__(
        self,
        sessionmaker: async_sessionmaker[AsyncSession],
        timeout: float = 5.0,
        click_timezone: str = "UTC",
    ):
        self.sessionmaker = sessionmaker
        self.timeout = timeout
        self.click_tz: tzinfo = ZoneInfo(click_timezone)

    async def _call(self, operation: Callable[[], Awaitable[T]]) -> T:
        try:
            return await asyncio.wait_for(operation(), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            logger.error(f"Store operation timed out after {self.timeout}s")
            raise TransientStoreError("Store operation timed out") from e
        except (OperationalError, InterfaceError) as e:
            logger.error(f"Store connection error: {e}")
            raise TransientStoreError("Store connection failed") from e
        except DBAPIError as e:
            if e.connection_invalidated:
                logger.error(f"Store connection invalidated: {e}")
                raise TransientStoreError("Store connection lost") from e
            raise

    async def insert(self, code: str, url: str) -> Link:
        async def op() -> Link:
            async with self.sessionmaker() as db:
                link = Link(code=code, url=url, clicks=0)
                db.add(link)
                try:
                    await db.commit()
                except IntegrityError as e:
                    await db.rollback()
                    if is_unique_violation(e):
                        raise DuplicateCodeError(code) from e
                    raise
                await db.refresh(link)
                return link

        return await self._call(op)

    async def get_by_code(self, code: str) -> Optional[Link]:
        async def op() -> Optional[Link]:
            async with self.sessionmaker() as db:
                result = await db.execute(select(Link).where(Link.code == code))
                return result.scalar_one_or_none()

        return await self._call(op)

    async def list_all(self) -> List[Link]:
        async def op() -> List[Link]:
            async with self.sessionmaker() as db:
                result = await db.execute(select(Link).order_by(Link.created_at.desc()))
                return list(result.scalars().all())

        return await self._call(op)

    async def delete_by_code(self, code: str) -> Optional[Link]:
        async def op() -> Optional[Link]:
            async with self.sessionmaker() as db:
                result = await db.execute(
                    delete(Link)
                    .where(Link.code == code)
                    .returning(Link)
                    .execution_options(synchronize_session=False)
                )
                deleted = result.scalar_one_or_none()
                await db.commit()
                return deleted

        return await self._call(op)

    async def increment_and_touch(self, code: str) -> Optional[str]:
        """Bump the counter and stamp last_clicked in a single UPDATE.

        Returns the destination url, or None when no row matched.
        """
        async def op() -> Optional[str]:
            async with self.sessionmaker() as db:
                result = await db.execute(
                    update(Link)
                    .where(Link.code == code)
                    .values(clicks=Link.clicks + 1, last_clicked=datetime.now(self.click_tz))
                    .returning(Link.url)
                    .execution_options(synchronize_session=False)
                )
                url = result.scalar_one_or_none()
                await db.commit()
                return url

        return await self._call(op)
