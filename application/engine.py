"""Composition of the reservation engine around one store and catalog"""
from datetime import date

from application.retry import NO_RETRY, RetryPolicy
from application.services import (
    AvailabilityChecker, QuoteCoordinator, ReservationCreator, ReservationService, Clock,
)
from domain.repositories import ReservationStore, ResourceCatalog
from domain.value_objects import MAX_STAY_NIGHTS


class ReservationEngine:
    """Handle owned by the process and passed to request handlers.

    Holds no global state; two engines over two stores are independent.
    """

    def __init__(self,
                 store: ReservationStore,
                 catalog: ResourceCatalog,
                 today: Clock = date.today,
                 retry: RetryPolicy = NO_RETRY,
                 quote_cache_size: int = 1000,
                 max_nights: int = MAX_STAY_NIGHTS):
        self.store = store
        self.catalog = catalog
        self.checker = AvailabilityChecker(store, catalog, today, retry, max_nights)
        self.creator = ReservationCreator(store, catalog, today, retry, max_nights)
        self.coordinator = QuoteCoordinator(self.checker, self.creator, quote_cache_size)
        self.reservations = ReservationService(store, today, retry)
