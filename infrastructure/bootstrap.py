"""Builds a ReservationEngine from Settings"""
import logging
from datetime import date
from typing import Iterable

from application.engine import ReservationEngine
from application.retry import RetryPolicy
from domain.entities import Resource
from infrastructure.config import Settings
from infrastructure.database import get_engine
from infrastructure.repositories.in_memory_repositories import (
    InMemoryReservationStore, InMemoryResourceCatalog,
)
from infrastructure.repositories.sql_repositories import SqlReservationStore, SqlResourceCatalog

logger = logging.getLogger(__name__)


def build_engine(settings: Settings, today=date.today, resources: Iterable[Resource] = ()) -> ReservationEngine:
    retry = RetryPolicy(
        attempts=settings.store_retry_attempts,
        base_delay=settings.store_retry_base_delay,
    )
    if settings.database_url:
        db_engine = get_engine(settings.database_url)
        store = SqlReservationStore(db_engine)
        catalog = SqlResourceCatalog(db_engine)
        logger.info("Using SQL reservation store (%s)", db_engine.dialect.name)
    else:
        store = InMemoryReservationStore()
        catalog = InMemoryResourceCatalog(resources)
        logger.info("Using in-memory reservation store")

    return ReservationEngine(
        store=store,
        catalog=catalog,
        today=today,
        retry=retry,
        quote_cache_size=settings.quote_cache_size,
    )
