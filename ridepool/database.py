import json
import logging
from datetime import datetime
from sqlalchemy import create_engine, Column, String, Text, DateTime
from sqlalchemy.orm import declarative_base
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.exc import SQLAlchemyError
from typing import Any, Optional

from ridepool import config
from ridepool.exceptions import PersistenceError

logger = logging.getLogger(__name__)

# Определение базы для моделей
Base = declarative_base()

# По умолчанию используется SQLite, если не указан DATABASE_URL для PostgreSQL
DATABASE_URL = config.DATABASE_URL
if DATABASE_URL.startswith('postgres'):
    # Для render.com может потребоваться замена 'postgres://' на 'postgresql://'
    DATABASE_URL = DATABASE_URL.replace('postgres://', 'postgresql://', 1)
logger.info(f"Using database: {DATABASE_URL}")

# Создание движка и сессии
engine_args = {}
if DATABASE_URL.startswith('sqlite'):
    engine_args['connect_args'] = {"check_same_thread": False}

engine = create_engine(DATABASE_URL, **engine_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class KeyValue(Base):
    """A named JSON blob. The ride engine keeps one row per collection."""
    __tablename__ = 'kv_store'
    key = Column(String, primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)


def init_database():
    """Creates the key-value table if it does not exist yet."""
    Base.metadata.create_all(bind=engine)


def get_item(key: str, session: Optional[Session] = None) -> Optional[Any]:
    """Returns the decoded value stored under ``key``, or None if absent or unreadable."""
    manage_session = session is None
    if manage_session:
        session = SessionLocal()
    try:
        row = session.query(KeyValue).filter_by(key=key).first()
        if row is None:
            return None
        return json.loads(row.value)
    except (SQLAlchemyError, ValueError) as e:
        logger.error(f"Error while reading key '{key}' from storage: {e}")
        return None
    finally:
        if manage_session:
            session.close()


def set_item(key: str, data: Any) -> bool:
    """Stores ``data`` as JSON under ``key``.

    Returns True on success. ``None`` is refused (logged, returns False) so a
    missing collection never overwrites a stored one. Any database or
    serialization failure is rolled back and re-raised as PersistenceError.
    """
    if data is None:
        logger.warning(f"Attempted to store None at key '{key}', ignoring.")
        return False
    session = SessionLocal()
    try:
        serialized = json.dumps(data, ensure_ascii=False)
        row = session.query(KeyValue).filter_by(key=key).first()
        if row:
            row.value = serialized
        else:
            session.add(KeyValue(key=key, value=serialized))
        session.commit()
        return True
    except (SQLAlchemyError, TypeError, ValueError) as e:
        logger.error(f"Error saving key '{key}' to storage: {e}")
        session.rollback()
        raise PersistenceError(f"Could not save '{key}': {e}") from e
    finally:
        session.close()


def remove_item(key: str) -> None:
    session = SessionLocal()
    try:
        session.query(KeyValue).filter_by(key=key).delete()
        session.commit()
    except SQLAlchemyError as e:
        logger.error(f"Error removing key '{key}' from storage: {e}")
        session.rollback()
    finally:
        session.close()


def clear_all_data() -> None:
    session = SessionLocal()
    try:
        session.query(KeyValue).delete()
        session.commit()
    except SQLAlchemyError as e:
        logger.error(f"Error clearing storage: {e}")
        session.rollback()
    finally:
        session.close()
