from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import structlog
from sqlalchemy import Column, DateTime, Integer, String, Text, create_engine, delete, select
from sqlalchemy.engine import URL, make_url
from sqlalchemy.orm import declarative_base, sessionmaker

from ports.persistence import PreferencesStorePort, TokenStorePort

logger = structlog.get_logger(__name__)
Base = declarative_base()

class AuthTokenORM(Base):
    __tablename__ = "auth_tokens"
    id = Column(Integer, primary_key=True)
    token = Column(Text, nullable=False)
    saved_at = Column(DateTime(timezone=True), nullable=False)

class PreferenceORM(Base):
    __tablename__ = "preferences"
    key = Column(String, primary_key=True)
    value = Column(String, nullable=False)

class SqlLocalStore(TokenStorePort, PreferencesStorePort):
    """Estado local do app (token e preferências) num SQLite."""

    _TOKEN_ROW_ID = 1

    def __init__(self, db_url: str):
        url = self._resolve_sqlite_url(db_url)
        self.engine = create_engine(url)
        self.Session = sessionmaker(bind=self.engine, expire_on_commit=False)
        Base.metadata.create_all(self.engine)

    # ---- token ----------------------------------------------------------
    def get_token(self) -> Optional[str]:
        with self.Session() as session:
            row = session.get(AuthTokenORM, self._TOKEN_ROW_ID)
            return row.token if row else None

    def set_token(self, token: str) -> None:
        session = self.Session()
        try:
            session.merge(
                AuthTokenORM(id=self._TOKEN_ROW_ID, token=token, saved_at=datetime.now(timezone.utc))
            )
            session.commit()
            logger.info("local_store.token.saved")
        except Exception:
            session.rollback()
            logger.exception("local_store.token.save_error")
            raise
        finally:
            session.close()

    def delete_token(self) -> None:
        session = self.Session()
        try:
            session.execute(delete(AuthTokenORM))
            session.commit()
            logger.info("local_store.token.deleted")
        except Exception:
            session.rollback()
            logger.exception("local_store.token.delete_error")
            raise
        finally:
            session.close()

    # ---- preferências ---------------------------------------------------
    def get(self, key: str) -> Optional[str]:
        with self.Session() as session:
            return session.execute(
                select(PreferenceORM.value).where(PreferenceORM.key == key)
            ).scalar_one_or_none()

    def set(self, key: str, value: str) -> None:
        session = self.Session()
        log = logger.bind(key=key)
        try:
            session.merge(PreferenceORM(key=key, value=value))
            session.commit()
            log.debug("local_store.preference.saved")
        except Exception:
            session.rollback()
            log.exception("local_store.preference.save_error")
            raise
        finally:
            session.close()

    @staticmethod
    def _resolve_sqlite_url(db_url: str) -> URL:
        """Expande `~` e cria o diretório do arquivo SQLite."""
        url = make_url(db_url)
        if url.get_backend_name() != "sqlite" or not url.database or url.database == ":memory:":
            return url
        path = Path(url.database).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        return url.set(database=str(path))
