import functools
import logging
from typing import Any, Awaitable, Callable, NamedTuple, Optional

from sqlalchemy.ext.asyncio import AsyncSession


class ItemResult(NamedTuple):
    """Outcome of a single-record operation. Callers branch on success."""
    data: Any
    success: bool
    message: Optional[str] = None


def not_found(entity: str, record_id: Any, data: Any = None) -> ItemResult:
    message = f"{entity} with ID {record_id} not found"
    logging.warning(message)
    return ItemResult(data, False, message)


def store_operation(action: str, failure_data: Any = None):
    """
    Wrap a store mutation so unexpected errors come back as a failed ItemResult.

    The session is rolled back before returning; the exception is logged,
    not re-raised.
    """
    def decorator(func: Callable[..., Awaitable[ItemResult]]):
        @functools.wraps(func)
        async def wrapper(session: AsyncSession, *args, **kwargs) -> ItemResult:
            try:
                return await func(session, *args, **kwargs)
            except Exception as e:
                logging.exception(f"Error {action}: {e}")
                await session.rollback()
                return ItemResult(failure_data, False, f"Error {action}: {e}")
        return wrapper
    return decorator
