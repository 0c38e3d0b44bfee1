"""
Centralized error handling decorators for database operations.
Wrap async service methods so that database failures are classified, logged
with context and then either re-raised or replaced by a default value.
"""
import functools
import logging
import traceback
from typing import Any, Callable, Optional

from sqlalchemy.exc import (
    DisconnectionError,
    IntegrityError,
    OperationalError,
    SQLAlchemyError,
    StatementError,
    TimeoutError,
)
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import DomainError

logger = logging.getLogger(__name__)


class DatabaseErrorHandler:
    """Centralized database error handling utilities."""

    DATABASE_EXCEPTIONS = (SQLAlchemyError, ConnectionError)

    @staticmethod
    def handle_database_error(
        exc: Exception,
        operation: str,
        context: Optional[dict] = None
    ) -> tuple[bool, str]:
        """
        Classify a database error and build its log message.

        Returns:
            Tuple of (is_recoverable, error_message)
        """
        context_str = f" | Context: {context}" if context else ""

        if isinstance(exc, IntegrityError):
            return False, f"Database integrity error during {operation}: {exc}{context_str}"
        if isinstance(exc, (ConnectionError, DisconnectionError)):
            return True, f"Database connection error during {operation}: {exc}{context_str}"
        if isinstance(exc, TimeoutError):
            return True, f"Database timeout during {operation}: {exc}{context_str}"
        if isinstance(exc, OperationalError):
            return True, f"Database operational error during {operation}: {exc}{context_str}"
        if isinstance(exc, StatementError):
            return False, f"Database statement error during {operation}: {exc}{context_str}"
        return False, (
            f"Unexpected database error during {operation}: "
            f"{type(exc).__name__}: {exc}{context_str}"
        )


def _find_session(args: tuple, kwargs: dict) -> Optional[AsyncSession]:
    for value in (*args, *kwargs.values()):
        if isinstance(value, AsyncSession):
            return value
    return None


def handle_database_exceptions(
    operation_name: Optional[str] = None,
    reraise: bool = True,
    default_return: Any = None,
    log_level: str = "error"
) -> Callable:
    """
    Decorator to wrap async database operations with error handling.

    Args:
        operation_name: Name of the operation for logging (defaults to function name)
        reraise: Whether to re-raise the exception after logging
        default_return: Value to return if an error occurs and reraise=False
        log_level: Logging level for database errors ('error', 'warning', 'info')

    Domain errors (not found, conflict...) are expected outcomes and always
    propagate untouched. When an error is swallowed, the session involved is
    rolled back so the caller can keep using it.
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs) -> Any:
            operation = operation_name or getattr(func, '__name__', 'unknown')
            try:
                result = await func(*args, **kwargs)
                logger.debug(f"Successfully completed {operation}")
                return result

            except DomainError:
                raise

            except DatabaseErrorHandler.DATABASE_EXCEPTIONS as exc:
                context = {
                    "function": getattr(func, '__name__', 'unknown'),
                    "kwargs_keys": list(kwargs.keys()),
                }
                _, error_msg = DatabaseErrorHandler.handle_database_error(exc, operation, context)
                getattr(logger, log_level, logger.error)(error_msg)

                if reraise:
                    raise
                await _rollback_quietly(_find_session(args, kwargs), operation)
                logger.info(f"Operation {operation} failed, continuing with default: {default_return!r}")
                return default_return

            except Exception as exc:
                logger.error(
                    f"Unexpected error in {operation}: {type(exc).__name__}: {exc}\n"
                    f"Traceback: {traceback.format_exc()}"
                )
                if reraise:
                    raise
                await _rollback_quietly(_find_session(args, kwargs), operation)
                return default_return

        return async_wrapper

    return decorator


async def _rollback_quietly(db: Optional[AsyncSession], operation: str) -> None:
    if db is None:
        return
    try:
        await db.rollback()
    except SQLAlchemyError as rollback_exc:
        logger.error(f"Failed to rollback after {operation}: {rollback_exc}")


def database_transaction(
    operation_name: Optional[str] = None,
    commit_on_success: bool = True,
    rollback_on_error: bool = True
) -> Callable:
    """
    Decorator to handle database transactions with proper commit/rollback.

    The AsyncSession is located among the call arguments.
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs) -> Any:
            operation = operation_name or getattr(func, '__name__', 'unknown')
            db_session = _find_session(args, kwargs)

            if db_session is None:
                logger.warning(f"No AsyncSession found for transaction operation {operation}")
                return await func(*args, **kwargs)

            try:
                logger.debug(f"Starting database transaction for {operation}")
                result = await func(*args, **kwargs)
                if commit_on_success:
                    await db_session.commit()
                    logger.debug(f"Transaction committed for {operation}")
                return result

            except Exception:
                if rollback_on_error:
                    await _rollback_quietly(db_session, operation)
                    logger.debug(f"Transaction rolled back for {operation}")
                raise

        return async_wrapper

    return decorator


def log_database_operation(
    operation: str,
    level: str = "debug"
) -> Callable:
    """
    Decorator to log start/completion/failure of a database operation.
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs) -> Any:
            logger_method = getattr(logger, level)
            func_name = getattr(func, '__name__', 'unknown')
            logger_method(f"Starting {operation} via {func_name}")
            try:
                result = await func(*args, **kwargs)
            except Exception as exc:
                logger_method(f"Failed {operation} via {func_name}: {exc}")
                raise
            logger_method(f"Completed {operation} via {func_name}")
            return result

        return async_wrapper

    return decorator


# Convenience decorators for common patterns
def safe_database_query(func=None, operation_name: Optional[str] = None, default_return: Any = None) -> Callable:
    """
    Read decorator that never raises on database errors.
    Use where one failing source must not take the whole response down.

    Usage:
        @safe_database_query
        @safe_database_query("daily recordings", default_return=[])
    """
    def decorator(f: Callable) -> Callable:
        return handle_database_exceptions(
            operation_name=operation_name,
            reraise=False,
            default_return=default_return,
            log_level="warning"
        )(f)

    if func is None:
        return decorator
    if callable(func):
        return decorator(func)
    # Called with the operation name as first positional arg
    return safe_database_query(operation_name=func, default_return=default_return)


def critical_database_operation(func=None, operation_name: Optional[str] = None) -> Callable:
    """
    Decorator that logs database errors and always re-raises them.

    Usage:
        @critical_database_operation
        @critical_database_operation("branch lookup")
    """
    def decorator(f: Callable) -> Callable:
        return handle_database_exceptions(
            operation_name=operation_name,
            reraise=True,
            log_level="error"
        )(f)

    if func is None:
        return decorator
    if callable(func):
        return decorator(func)
    return critical_database_operation(operation_name=func)


def transactional_database_operation(func=None, operation_name: Optional[str] = None) -> Callable:
    """
    Combined decorator: commit/rollback handling plus error logging.

    Usage:
        @transactional_database_operation("create deployment")
    """
    def decorator(f: Callable) -> Callable:
        transaction_decorated = database_transaction(operation_name=operation_name)(f)
        return handle_database_exceptions(operation_name=operation_name, reraise=True)(transaction_decorated)

    if func is None:
        return decorator
    if callable(func):
        return decorator(func)
    return transactional_database_operation(operation_name=func)
