"""Transaction scope shared by the ledger and the grade aggregator."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from models.registration import Registration
from models.section import Section
from services.errors import PersistenceFailure, RegistrarError

logger = logging.getLogger(__name__)


@contextmanager
def transaction(session: Session) -> Iterator[Session]:
    """Commit on normal exit, roll back on every other exit.

    Named registrar errors propagate unchanged. Anything the database raises
    (constraint violations, lost connections, failed commits) is reported as
    PersistenceFailure with the original error chained.
    """
    try:
        yield session
        session.commit()
    except RegistrarError:
        session.rollback()
        raise
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception("Transaction rolled back")
        raise PersistenceFailure("The change could not be saved. Nothing was written.") from exc
    except BaseException:
        session.rollback()
        raise


def lock_section(session: Session, section_id: int) -> Optional[Section]:
    # Row lock on backends that support it (SQLite serializes writers anyway).
    stmt = (
        select(Section)
        .where(Section.id == section_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return session.execute(stmt).scalar_one_or_none()


def lock_registration(session: Session, student_id: int, section_id: int) -> Optional[Registration]:
    # Re-read under the lock; a row loaded earlier in the request may be stale.
    stmt = (
        select(Registration)
        .where(
            Registration.student_id == student_id,
            Registration.section_id == section_id,
        )
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return session.execute(stmt).scalar_one_or_none()
