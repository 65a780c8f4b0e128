"""SQLAlchemy Repository Implementations"""
import logging
from contextlib import asynccontextmanager, contextmanager
from datetime import date, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import AsyncIterator, List, Optional
from uuid import UUID

from sqlalchemy import select, text
from sqlalchemy.exc import DBAPIError, DisconnectionError, InterfaceError, OperationalError

from domain.entities import Reservation, Resource
from domain.enums import BLOCKING_STATUSES, HolderFilter, ReservationStatus
from domain.exceptions import ReservationNotFound, ResourceNotFound, StoreUnavailable
from domain.intervals import overlaps
from domain.listing import select_for_holder
from domain.repositories import ReservationStore, ReservationTransaction, ResourceCatalog
from domain.value_objects import DateRange, Money
from infrastructure.database import create_schema, get_session
from infrastructure.models import ReservationRecord, ResourceRecord
from infrastructure.repositories.in_memory_repositories import ResourceLocks

logger = logging.getLogger(__name__)

_CENT = Decimal("0.01")


def _to_cents(amount: Decimal) -> int:
    return int((amount / _CENT).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _from_cents(cents: int) -> Decimal:
    return Decimal(cents) * _CENT


def _aware(value):
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _to_record(reservation: Reservation) -> ReservationRecord:
    return ReservationRecord(
        id=str(reservation.reservation_id),
        resource_id=reservation.resource_id,
        holder_id=reservation.holder_id,
        check_in=reservation.check_in,
        check_out=reservation.check_out,
        total_cents=_to_cents(reservation.total_price.amount),
        currency=reservation.total_price.currency,
        status=reservation.status.value,
        created_at=reservation.created_at,
        updated_at=reservation.updated_at,
    )


def _to_entity(record: ReservationRecord) -> Reservation:
    return Reservation(
        reservation_id=UUID(record.id),
        resource_id=record.resource_id,
        holder_id=record.holder_id,
        date_range=DateRange(check_in=record.check_in, check_out=record.check_out),
        total_price=Money(amount=_from_cents(record.total_cents), currency=record.currency),
        status=ReservationStatus(record.status),
        created_at=_aware(record.created_at),
        updated_at=_aware(record.updated_at),
    )


@contextmanager
def _store_errors():
    """Surface connection-level driver failures as StoreUnavailable"""
    try:
        yield
    except (OperationalError, InterfaceError, DisconnectionError) as exc:
        logger.warning("Reservation store unavailable: %s", exc)
        raise StoreUnavailable(f"Reservation store unavailable: {exc}") from exc
    except DBAPIError as exc:
        if exc.connection_invalidated:
            raise StoreUnavailable(f"Reservation store connection lost: {exc}") from exc
        raise


def _conflict_query(resource_id: str, date_range: DateRange, exclude_id: Optional[UUID] = None):
    stmt = select(ReservationRecord).where(
        ReservationRecord.resource_id == resource_id,
        ReservationRecord.status.in_([s.value for s in BLOCKING_STATUSES]),
        overlaps(
            ReservationRecord.check_in, ReservationRecord.check_out,
            date_range.check_in, date_range.check_out,
        ),
    )
    if exclude_id is not None:
        stmt = stmt.where(ReservationRecord.id != str(exclude_id))
    return stmt.order_by(ReservationRecord.check_in)


class SqlReservationTransaction(ReservationTransaction):

    def __init__(self, session, resource_id: str):
        self._session = session
        self._resource_id = resource_id

    async def find_conflicting(
        self, date_range: DateRange, exclude_id: Optional[UUID] = None
    ) -> List[Reservation]:
        # autoflush makes rows added in this transaction visible to the query
        res = await self._session.execute(_conflict_query(self._resource_id, date_range, exclude_id))
        return [_to_entity(r) for r in res.scalars().all()]

    async def add(self, reservation: Reservation) -> Reservation:
        if reservation.resource_id != self._resource_id:
            raise ValueError(
                f"Transaction for resource {self._resource_id} cannot write "
                f"a reservation for {reservation.resource_id}"
            )
        reservation.validate_for_storage()
        self._session.add(_to_record(reservation))
        return reservation


class SqlReservationStore(ReservationStore):
    """SQLAlchemy implementation of ReservationStore.

    Writers on one resource are serialized by an in-process lock. Across
    processes, PostgreSQL takes a transaction-scoped advisory lock keyed on the
    resource id and SQLite opens every transaction with BEGIN IMMEDIATE (see
    infrastructure.database). Other dialects are refused.
    """

    SUPPORTED_DIALECTS = ("postgresql", "sqlite")

    def __init__(self, engine):
        if engine.dialect.name not in self.SUPPORTED_DIALECTS:
            supported = ", ".join(self.SUPPORTED_DIALECTS)
            raise ValueError(
                f"Unsupported reservation database dialect {engine.dialect.name!r}; use one of {supported}"
            )
        self._engine = engine
        self._session_factory = get_session(engine)
        self._locks = ResourceLocks()

    async def prepare(self) -> None:
        with _store_errors():
            await create_schema(self._engine)

    async def close(self) -> None:
        await self._engine.dispose()

    async def _lock_resource(self, session, resource_id: str) -> None:
        if self._engine.dialect.name == "postgresql":
            await session.execute(
                text("SELECT pg_advisory_xact_lock(hashtext(:key))"), {"key": resource_id}
            )
        else:
            # BEGIN IMMEDIATE runs here and waits for other writers
            await session.connection()

    @asynccontextmanager
    async def transaction(self, resource_id: str) -> AsyncIterator[ReservationTransaction]:
        async with self._locks.for_resource(resource_id):
            with _store_errors():
                async with self._session_factory() as session:
                    async with session.begin():
                        await self._lock_resource(session, resource_id)
                        yield SqlReservationTransaction(session, resource_id)

    async def find_conflicting(
        self,
        resource_id: str,
        check_in: date,
        check_out: date,
        exclude_id: Optional[UUID] = None,
    ) -> List[Reservation]:
        date_range = DateRange(check_in=check_in, check_out=check_out)
        with _store_errors():
            async with self._session_factory() as session:
                res = await session.execute(_conflict_query(resource_id, date_range, exclude_id))
                return [_to_entity(r) for r in res.scalars().all()]

    async def get(self, reservation_id: UUID) -> Reservation:
        with _store_errors():
            async with self._session_factory() as session:
                record = await session.get(ReservationRecord, str(reservation_id))
        if record is None:
            raise ReservationNotFound(reservation_id)
        return _to_entity(record)

    async def set_status(self, reservation_id: UUID, status: ReservationStatus) -> Reservation:
        with _store_errors():
            async with self._session_factory() as session:
                async with session.begin():
                    record = await session.get(
                        ReservationRecord, str(reservation_id), with_for_update=True
                    )
                    if record is None:
                        raise ReservationNotFound(reservation_id)
                    reservation = _to_entity(record)
                    reservation.transition_to(status)
                    record.status = reservation.status.value
                    record.updated_at = reservation.updated_at
        return reservation

    async def list_by_resource(self, resource_id: str, from_date: Optional[date] = None) -> List[Reservation]:
        stmt = select(ReservationRecord).where(
            ReservationRecord.resource_id == resource_id,
            ReservationRecord.status != ReservationStatus.CANCELLED.value,
        )
        if from_date is not None:
            stmt = stmt.where(ReservationRecord.check_out > from_date)
        with _store_errors():
            async with self._session_factory() as session:
                res = await session.execute(stmt.order_by(ReservationRecord.check_in))
                return [_to_entity(r) for r in res.scalars().all()]

    async def list_by_holder(
        self,
        holder_id: str,
        holder_filter: HolderFilter = HolderFilter.ACTIVE,
        today: Optional[date] = None,
    ) -> List[Reservation]:
        today = today or date.today()
        with _store_errors():
            async with self._session_factory() as session:
                res = await session.execute(
                    select(ReservationRecord).where(ReservationRecord.holder_id == str(holder_id))
                )
                mine = [_to_entity(r) for r in res.scalars().all()]
        return select_for_holder(mine, holder_filter, today)


class SqlResourceCatalog(ResourceCatalog):
    """SQLAlchemy implementation of ResourceCatalog"""

    def __init__(self, engine):
        self._session_factory = get_session(engine)

    async def add(self, resource: Resource) -> Resource:
        with _store_errors():
            async with self._session_factory() as session:
                async with session.begin():
                    await session.merge(ResourceRecord(
                        id=resource.resource_id,
                        title=resource.title,
                        nightly_cents=_to_cents(resource.nightly_price.amount),
                        currency=resource.nightly_price.currency,
                    ))
        return resource

    async def resolve(self, resource_id: str) -> Resource:
        with _store_errors():
            async with self._session_factory() as session:
                record = await session.get(ResourceRecord, resource_id)
        if record is None:
            raise ResourceNotFound(resource_id)
        return Resource(
            resource_id=record.id,
            title=record.title,
            nightly_price=Money(amount=_from_cents(record.nightly_cents), currency=record.currency),
        )
