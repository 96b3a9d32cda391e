"""Composition root: builds the inventory core from settings.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from ims.application.adjustment_engine import AdjustmentEngine
from ims.application.inventory_service import InventoryService
from ims.application.inventory_store import InventoryRecordStore
from ims.application.reservation_manager import ReservationManager
from ims.application.stock_ledger import StockLedger
from ims.domain.repository.product_catalog import ProductCatalog
from ims.domain.repository.unit_of_work import UnitOfWorkFactory
from ims.domain.service.alerting import AlertingGate
from ims.infrastructure.alert_publishers import (
    CollectingAlertPublisher,
    LoggingAlertPublisher,
)
from ims.infrastructure.catalog.json_product_catalog import JsonProductCatalog
from ims.infrastructure.persistence.sqlalchemy_unit_of_work import (
    SqlAlchemyUnitOfWork,
    create_session_factory,
)
from ims.infrastructure.settings import Settings


@dataclass
class Application:
    settings: Settings
    alerts: CollectingAlertPublisher
    reservations: ReservationManager
    service: InventoryService


def sqlalchemy_uow_factory(settings: Settings) -> UnitOfWorkFactory:
    session_factory = create_session_factory(settings.database_url, settings.database_echo)
    return lambda: SqlAlchemyUnitOfWork(session_factory)


def product_catalog(settings: Settings) -> JsonProductCatalog:
    return JsonProductCatalog(settings.catalog_path)


def build_application(
    settings: Settings | None = None,
    *,
    uow_factory: UnitOfWorkFactory | None = None,
    catalog: ProductCatalog | None = None,
    clock: Callable[[], datetime] | None = None,
) -> Application:
    """Assemble the inventory core.

    Storage and catalog default to what ``settings`` describes; either can
    be passed in instead (tests hand in in-memory versions).
    """
    settings = settings or Settings()
    uow_factory = uow_factory or sqlalchemy_uow_factory(settings)
    catalog = catalog or product_catalog(settings)

    alerts = CollectingAlertPublisher(
        forward_to=LoggingAlertPublisher(), max_alerts=settings.alert_buffer_size
    )
    alerting = AlertingGate(alerts, clock)
    ledger = StockLedger(uow_factory, clock)
    store = InventoryRecordStore(
        uow_factory, catalog, ledger, alerting, clock, max_retries=settings.max_retries
    )
    reservations = ReservationManager(
        store, uow_factory, default_ttl_minutes=settings.reservation_ttl_minutes
    )
    adjustments = AdjustmentEngine(store)
    service = InventoryService(store, ledger, reservations, adjustments, alerting)

    return Application(
        settings=settings,
        alerts=alerts,
        reservations=reservations,
        service=service,
    )
