"""SQLAlchemy persistence for :class:`~wifidata.entities.WifiPoint` records.

The store is the only component that talks to the database. A few guiding
principles:

* Rows are read back as plain column tuples and mapped to ``WifiPoint``
  through :func:`_row_to_point`; ORM entities never leave this module.
* The one write path, :meth:`WifiPointStore.bulk_insert`, runs inside a
  single transaction so a load either lands completely or not at all.
* Duplicate keys surface as :class:`~wifidata.errors.DuplicateRecordError`
  so callers do not need to know about SQLAlchemy exception types.

The module works against any SQLAlchemy URL; SQLite is the default for
local use and tests, PostgreSQL for shared deployments.
"""

from __future__ import annotations

from datetime import datetime, timezone
import logging
from typing import Any, Iterable, List, Sequence, Tuple

from sqlalchemy import (
    DateTime,
    Float,
    MetaData,
    String,
    create_engine as _sa_create_engine,
    func,
    insert,
    select,
)
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import (
    DeclarativeBase,
    Mapped,
    Session,
    mapped_column,
    sessionmaker,
)
from sqlalchemy.pool import StaticPool

from .entities import WifiPoint
from .errors import DuplicateRecordError, RecordNotFoundError
from .normalize import normalize_alcaldia

__all__ = [
    "Base",
    "WifiPointRecord",
    "WifiPointStore",
    "SORT_COLUMNS",
    "create_engine",
    "create_sessionmaker",
    "create_sqlite_memory_engine",
    "ensure_schema",
]

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# SQLAlchemy ORM models
# ---------------------------------------------------------------------------

_naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    metadata = MetaData(naming_convention=_naming_convention)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class WifiPointRecord(Base):
    __tablename__ = "wifi_points"

    punto_id: Mapped[str] = mapped_column(String(100), primary_key=True)
    programa: Mapped[str] = mapped_column(String(100), nullable=False)
    latitud: Mapped[float] = mapped_column(Float, nullable=False)
    longitud: Mapped[float] = mapped_column(Float, nullable=False)
    alcaldia: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    created_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=False), default=_utcnow
    )


# Public field name -> column, in the order rows are selected.
SORT_COLUMNS = {
    "id": WifiPointRecord.punto_id,
    "programa": WifiPointRecord.programa,
    "latitude": WifiPointRecord.latitud,
    "longitude": WifiPointRecord.longitud,
    "alcaldia": WifiPointRecord.alcaldia,
}

_POINT_COLUMNS = tuple(SORT_COLUMNS.values())

# ---------------------------------------------------------------------------
# Engine / session helpers
# ---------------------------------------------------------------------------


def create_engine(url: str, *, echo: bool = False, **kwargs):
    """Wrapper around :func:`sqlalchemy.create_engine` for convenience."""

    return _sa_create_engine(url, echo=echo, **kwargs)


def create_sqlite_memory_engine(echo: bool = False):
    """In-memory SQLite engine sharing one connection, for tests and demos."""

    return create_engine(
        "sqlite+pysqlite:///:memory:",
        echo=echo,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )


def create_sessionmaker(engine, *, expire_on_commit: bool = False, **kwargs):
    """Return a configured ``sessionmaker`` factory for the given engine."""

    return sessionmaker(bind=engine, expire_on_commit=expire_on_commit, class_=Session, **kwargs)


def ensure_schema(engine) -> None:
    """Create the database schema if it does not already exist."""

    Base.metadata.create_all(engine)


# ---------------------------------------------------------------------------
# Row mapping
# ---------------------------------------------------------------------------


def _row_to_point(row: Sequence[Any]) -> WifiPoint:
    punto_id, programa, latitud, longitud, alcaldia = row
    return WifiPoint(
        id=punto_id,
        programa=programa,
        latitude=float(latitud),
        longitude=float(longitud),
        alcaldia=alcaldia,
    )


def _point_to_row(point: WifiPoint) -> dict[str, Any]:
    return {
        "punto_id": point.id,
        "programa": point.programa,
        "latitud": point.latitude,
        "longitud": point.longitude,
        "alcaldia": point.alcaldia,
    }


def _order_by(sort: str):
    try:
        column = SORT_COLUMNS[sort]
    except KeyError:
        raise ValueError(f"Unsupported sort field: {sort!r}") from None
    if column is WifiPointRecord.punto_id:
        return (column,)
    return (column, WifiPointRecord.punto_id)


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


class WifiPointStore:
    """Read-mostly access to the ``wifi_points`` table."""

    def __init__(self, engine, *, create_schema: bool = True):
        self.engine = engine
        if create_schema:
            ensure_schema(engine)
        self._sessions = create_sessionmaker(engine)

    @classmethod
    def from_url(cls, url: str, **engine_kwargs) -> "WifiPointStore":
        return cls(create_engine(url, **engine_kwargs))

    def count(self) -> int:
        with self._sessions() as session:
            stmt = select(func.count()).select_from(WifiPointRecord)
            return int(session.execute(stmt).scalar_one())

    def bulk_insert(self, points: Iterable[WifiPoint]) -> int:
        """Insert ``points`` in one transaction and return how many were written."""

        rows = [_point_to_row(p) for p in points]
        if not rows:
            return 0
        try:
            with self._sessions.begin() as session:
                session.execute(insert(WifiPointRecord), rows)
        except IntegrityError as exc:
            raise DuplicateRecordError(
                f"Bulk insert of {len(rows)} WiFi points hit an existing identifier"
            ) from exc
        logger.info("store.bulk_insert rows=%s", len(rows))
        return len(rows)

    def get(self, point_id: str) -> WifiPoint:
        stmt = select(*_POINT_COLUMNS).where(WifiPointRecord.punto_id == point_id)
        with self._sessions() as session:
            row = session.execute(stmt).one_or_none()
        if row is None:
            raise RecordNotFoundError(point_id)
        return _row_to_point(row)

    def find_all(self, offset: int, limit: int, *, sort: str = "id") -> Tuple[List[WifiPoint], int]:
        stmt = select(*_POINT_COLUMNS).order_by(*_order_by(sort)).offset(offset).limit(limit)
        with self._sessions() as session:
            rows = session.execute(stmt).all()
        return [_row_to_point(r) for r in rows], self.count()

    def find_by_alcaldia(
        self, alcaldia: str, offset: int, limit: int, *, sort: str = "id"
    ) -> Tuple[List[WifiPoint], int]:
        """Return one slice of the points in ``alcaldia`` plus the match count.

        Stored labels are normalized, so the argument is normalized the same
        way; matching then ignores case and repeated whitespace.
        """
        condition = WifiPointRecord.alcaldia == normalize_alcaldia(alcaldia)
        stmt = (
            select(*_POINT_COLUMNS)
            .where(condition)
            .order_by(*_order_by(sort))
            .offset(offset)
            .limit(limit)
        )
        count_stmt = select(func.count()).select_from(WifiPointRecord).where(condition)
        with self._sessions() as session:
            rows = session.execute(stmt).all()
            total = int(session.execute(count_stmt).scalar_one())
        return [_row_to_point(r) for r in rows], total

    def all(self) -> List[WifiPoint]:
        stmt = select(*_POINT_COLUMNS).order_by(WifiPointRecord.punto_id)
        with self._sessions() as session:
            rows = session.execute(stmt).all()
        return [_row_to_point(r) for r in rows]
