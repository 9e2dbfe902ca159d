"""Database handle, session scoping and the retrying transaction runner."""

import logging
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, TypeVar

from fastapi import Depends, Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError
from sqlalchemy.orm import Session, sessionmaker
from tenacity import Retrying, before_sleep_log, retry_if_exception, stop_after_attempt, wait_exponential

from core.errors import ConstraintViolation, TransientStoreFailure
from core.logging import get_logger
from core.models import Base
from core.settings import Settings

# Register every table on Base.metadata before create_all runs.
from modules.materials import models as _material_models  # noqa: F401
from modules.orders import models as _order_models  # noqa: F401
from modules.tooling import models as _tooling_models  # noqa: F401

logger = get_logger(__name__)

T = TypeVar("T")


def _is_retryable(exc: BaseException) -> bool:
    if isinstance(exc, TransientStoreFailure):
        return True
    return isinstance(exc, ConstraintViolation) and exc.retryable


def _engine_options(settings: Settings) -> Dict[str, Any]:
    if settings.is_sqlite:
        return {"connect_args": {"check_same_thread": False}}
    options: Dict[str, Any] = {"pool_pre_ping": True}
    if settings.isolation_level:
        options["isolation_level"] = settings.isolation_level
    if settings.database_url.startswith("postgresql"):
        options["connect_args"] = {"options": f"-c statement_timeout={settings.statement_timeout_ms}"}
    return options


class Database:
    """Process-wide store handle.

    Created once by the application factory, stored on ``app.state.db`` and
    handed to the services that need transactional writes.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self.engine: Engine = create_engine(settings.database_url, **_engine_options(settings))
        self._session_factory = sessionmaker(
            bind=self.engine, autoflush=False, expire_on_commit=False
        )

    def create_all(self) -> None:
        Base.metadata.create_all(bind=self.engine)

    def drop_all(self) -> None:
        Base.metadata.drop_all(bind=self.engine)

    def dispose(self) -> None:
        self.engine.dispose()

    @contextmanager
    def session(self) -> Iterator[Session]:
        session = self._session_factory()
        try:
            yield session
        finally:
            session.close()

    def run_in_transaction(self, work: Callable[[Session], T]) -> T:
        """Run ``work(session)`` as one atomic unit.

        Transient failures and store-level unique conflicts are retried on a
        fresh session; whatever remains after the last attempt is re-raised.
        """
        retryer = Retrying(
            stop=stop_after_attempt(self.settings.store_retry_attempts),
            wait=wait_exponential(multiplier=self.settings.store_retry_backoff_s, max=2),
            retry=retry_if_exception(_is_retryable),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        return retryer(self._run_once, work)

    def _run_once(self, work: Callable[[Session], T]) -> T:
        session = self._session_factory()
        try:
            with session.begin():
                return work(session)
        except IntegrityError as exc:
            logger.warning("Unique constraint conflict: %s", exc.orig)
            raise ConstraintViolation("A concurrent change claimed the same record", retryable=True) from exc
        except OperationalError as exc:
            logger.warning("Transient store failure: %s", exc.orig)
            raise TransientStoreFailure() from exc
        except DBAPIError as exc:
            if exc.connection_invalidated:
                logger.warning("Connection invalidated: %s", exc.orig)
                raise TransientStoreFailure() from exc
            raise
        finally:
            session.close()


def get_database(request: Request) -> Database:
    return request.app.state.db


def get_db(database: Database = Depends(get_database)):
    with database.session() as session:
        yield session
