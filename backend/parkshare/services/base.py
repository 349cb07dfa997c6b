# backend/parkshare/services/base.py
"""
Shared service plumbing for ParkShare.

Every service gets a session, a class-named logger, a commit/rollback
scope and the ``measure_operation`` timing decorator that feeds both the
in-process stats and Prometheus.
"""

from contextlib import contextmanager
from dataclasses import asdict, dataclass
from functools import wraps
import logging
import time
from typing import Any, Callable, ClassVar, Dict, Iterator, TypeVar, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import RepositoryException, ServiceException
from ..monitoring.prometheus_metrics import prometheus_metrics

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

SLOW_OPERATION_SECONDS = 1.0


@dataclass
class OperationStats:
    """Running timings for one service operation."""

    count: int = 0
    total_time: float = 0.0
    success_count: int = 0
    failure_count: int = 0
    min_time: float = float("inf")
    max_time: float = 0.0

    def add(self, elapsed: float, success: bool) -> None:
        self.count += 1
        self.total_time += elapsed
        self.min_time = min(self.min_time, elapsed)
        self.max_time = max(self.max_time, elapsed)
        if success:
            self.success_count += 1
        else:
            self.failure_count += 1

    def summary(self) -> Dict[str, float]:
        data: Dict[str, float] = asdict(self)
        data["avg_time"] = self.total_time / self.count if self.count else 0.0
        return data


class BaseService:
    """Base class for services that own a unit of work on one session."""

    # service class name -> operation -> stats
    _operation_stats: ClassVar[Dict[str, Dict[str, OperationStats]]] = {}

    def __init__(self, db: Session):
        self.db = db
        self.logger = logging.getLogger(self.__class__.__name__)

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """
        Commit on clean exit, roll back on any error.

        Storage failures (SQLAlchemy or repository errors) are logged and
        surfaced as ``ServiceException`` with code ``DATABASE_ERROR``; every
        other exception propagates unchanged after the rollback.
        """
        try:
            yield self.db
            self.db.commit()
        except (SQLAlchemyError, RepositoryException) as e:
            self.logger.error(f"Transaction failed, rolling back: {e}")
            self.db.rollback()
            raise ServiceException("Database operation failed", code="DATABASE_ERROR") from e
        except Exception as e:
            self.logger.debug(f"Rolling back after {type(e).__name__}")
            self.db.rollback()
            raise

    @contextmanager
    def reading(self) -> Iterator[Session]:
        """Read-only scope: storage failures become ``DATABASE_ERROR`` like in ``transaction``."""
        try:
            yield self.db
        except (SQLAlchemyError, RepositoryException) as e:
            self.logger.error(f"Read failed: {e}")
            self.db.rollback()
            raise ServiceException("Database operation failed", code="DATABASE_ERROR") from e

    @staticmethod
    def measure_operation(operation_name: str) -> Callable[[F], F]:
        """
        Time a service method and record the outcome.

        Usage:
            @BaseService.measure_operation("cancel_booking")
            def cancel_booking(self, booking_id, caller):
                ...
        """

        def decorator(func: F) -> F:
            @wraps(func)
            def wrapper(self, *args, **kwargs):
                started = time.perf_counter()
                error_type = None
                try:
                    return func(self, *args, **kwargs)
                except Exception as e:
                    error_type = type(e).__name__
                    raise
                finally:
                    self._finish_operation(operation_name, time.perf_counter() - started, error_type)

            wrapper._operation_name = operation_name  # type: ignore[attr-defined]
            wrapper._is_measured = True  # type: ignore[attr-defined]
            return cast(F, wrapper)

        return decorator

    def _finish_operation(self, operation: str, elapsed: float, error_type: Any) -> None:
        success = error_type is None
        service_name = self.__class__.__name__
        stats = BaseService._operation_stats.setdefault(service_name, {})
        stats.setdefault(operation, OperationStats()).add(elapsed, success)

        if elapsed > SLOW_OPERATION_SECONDS:
            self.logger.warning(f"Slow operation: {operation} took {elapsed:.2f}s")

        if settings.metrics_enabled:
            prometheus_metrics.record_service_operation(
                service=service_name,
                operation=operation,
                duration=elapsed,
                status="success" if success else "error",
                error_type=error_type,
            )

    def log_operation(self, operation: str, **context: Any) -> None:
        """Log an operation with structured context (timing is handled by the decorator)."""
        self.logger.info(f"Operation: {operation}", extra={"operation": operation, **context})

    def get_metrics(self) -> Dict[str, Dict[str, float]]:
        """In-process timing summary for this service class, keyed by operation."""
        stats = BaseService._operation_stats.get(self.__class__.__name__, {})
        return {operation: entry.summary() for operation, entry in stats.items()}
