"""Decorator standardizing logging and error classification for DB calls.

Every wrapped coroutine is timed and logged at trace level. SQLAlchemy errors
are classified, logged at a level matching their severity, and re-raised
unchanged so callers decide how to degrade.
"""

from collections.abc import Callable, Coroutine
import functools
import inspect
import time
from typing import Any, ParamSpec, TypeVar

from sqlalchemy.exc import (
    DatabaseError,
    IntegrityError,
    OperationalError,
    SQLAlchemyError,
    TimeoutError,
)

from tunematch.config import get_logger

P = ParamSpec("P")
T = TypeVar("T")

logger = get_logger(__name__)

# (exception type, log level, description), most specific first
_ERROR_CLASSES: tuple[tuple[type[BaseException], str, str], ...] = (
    (IntegrityError, "WARNING", "DB integrity error"),
    (TimeoutError, "ERROR", "DB timeout error"),
    (OperationalError, "ERROR", "DB operational error"),
    (DatabaseError, "ERROR", "DB error"),
    (SQLAlchemyError, "ERROR", "SQLAlchemy error"),
)


def db_operation(operation_name: str | None = None):
    """Decorate store methods with consistent logging and error handling.

    Args:
        operation_name: Optional name for the operation (defaults to function name)

    Example:
        @db_operation("get_value")
        async def get(self, key: str) -> bytes | None:
            ...
    """

    def decorator(
        func: Callable[P, Coroutine[Any, Any, T]],
    ) -> Callable[P, Coroutine[Any, Any, T]]:
        func_name = operation_name or func.__name__

        if not inspect.iscoroutinefunction(func):
            raise TypeError(
                f"db_operation can only be used with async functions, but {func_name} is not async",
            )

        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            start_time = time.perf_counter()
            store_name = args[0].__class__.__name__ if args else "Store"

            try:
                result = await func(*args, **kwargs)
            except SQLAlchemyError as e:
                exec_time = (time.perf_counter() - start_time) * 1000
                level, description = next(
                    (level, description)
                    for error_type, level, description in _ERROR_CLASSES
                    if isinstance(e, error_type)
                )
                logger.log(
                    level,
                    f"{description}: {store_name}.{func_name}",
                    operation=func_name,
                    error=str(e),
                    exec_time_ms=exec_time,
                )
                raise
            except Exception as e:
                exec_time = (time.perf_counter() - start_time) * 1000
                logger.exception(
                    f"Unhandled exception in {store_name}.{func_name}",
                    operation=func_name,
                    error=str(e),
                    exec_time_ms=exec_time,
                )
                raise

            exec_time = (time.perf_counter() - start_time) * 1000
            logger.trace(
                f"DB operation completed: {store_name}.{func_name}",
                operation=func_name,
                exec_time_ms=exec_time,
            )
            return result

        return wrapper

    return decorator
