from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, text
from sqlalchemy.exc import DataError, IntegrityError
from sqlalchemy.orm import sessionmaker, DeclarativeBase, Session
from sqlalchemy.pool import QueuePool
from fleetlink.config import settings
from fleetlink.utils.exceptions import (
    AppException, DuplicateAssociationException, DuplicateEntryException, InvalidFieldException,
    NotFoundException,
)
import logging

logger = logging.getLogger(__name__)


# ─── Engine ────────────────────────────────────────────────────────────────────
engine = create_engine(
    settings.DATABASE_URL,
    poolclass=QueuePool,
    pool_size=settings.DATABASE_POOL_SIZE,
    max_overflow=settings.DATABASE_MAX_OVERFLOW,
    pool_timeout=settings.DATABASE_POOL_TIMEOUT,
    pool_pre_ping=True,
    isolation_level=settings.DATABASE_ISOLATION_LEVEL,
    echo=settings.DATABASE_ECHO,
)


# ─── Session Factory ───────────────────────────────────────────────────────────
SessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,      # services serialize rows after commit
)


# ─── Base Model ────────────────────────────────────────────────────────────────
class Base(DeclarativeBase):
    """Declarative base shared by every table in fleetlink.models."""
    pass


# ─── Dependency Injection ──────────────────────────────────────────────────────
def get_db():
    """
    One session per request. Services open their own transaction() blocks on
    it; anything left uncommitted is rolled back when the request fails.
    """
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


# ─── Unit of Work ──────────────────────────────────────────────────────────────
# Natural keys of the resource tables, under every name a violation may report:
# SQLite column path, ORM unique index, migration unique constraint
NATURAL_KEYS = {
    "plate": ("vehicles.plate", "ix_vehicles_plate", "vehicles_plate_key"),
    "cpf":   ("drivers.cpf", "ix_drivers_cpf", "drivers_cpf_key"),
}


def integrity_failure(e: IntegrityError) -> AppException:
    """Pick the typed failure for a constraint the database refused."""
    message = str(e.orig)
    lowered = message.lower()
    constraint = getattr(getattr(e.orig, "diag", None), "constraint_name", None)

    if "foreign key" in lowered:
        return NotFoundException("Referenced record")
    if "unique" not in lowered and "duplicate" not in lowered:
        return InvalidFieldException("A required field is missing or has an invalid value")
    for field, names in NATURAL_KEYS.items():
        if constraint in names or any(name in message for name in names):
            return DuplicateEntryException(f"{field} is already registered", field=field)
    return DuplicateAssociationException()


@contextmanager
def transaction(db: Session) -> Iterator[Session]:
    """
    Run a multi-step operation as one atomic unit against the given session.

    Commits when the block exits cleanly, rolls back on any exception. Constraint
    violations raised by the database at flush or commit time are surfaced as
    typed failures so callers can tell a lost race from a malformed request:

        association unique index -> DuplicateAssociationException (409)
        plate / cpf unique key   -> DuplicateEntryException (409)
        foreign key              -> NotFoundException (404)
        NOT NULL / CHECK         -> InvalidFieldException (400)
        DataError                -> InvalidFieldException (400)

    Usage:
        with transaction(db):
            db.add(row)
            db.flush()
    """
    try:
        yield db
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.warning(f"Constraint violated, transaction rolled back: {e.orig}")
        raise integrity_failure(e) from e
    except DataError as e:
        db.rollback()
        logger.warning(f"Invalid value rejected by database: {e.orig}")
        raise InvalidFieldException(
            "The value provided is too long or has an invalid format for one of the fields"
        ) from e
    except Exception:
        db.rollback()
        raise


# ─── Health Check ──────────────────────────────────────────────────────────────
def check_db_connection() -> bool:
    """Verify database is reachable. Used at startup."""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"Database connection failed: {e}")
        return False
