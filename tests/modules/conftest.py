"""
Shared fixtures for module tests.

Every fixture is opt-in: each test names the services, products and bikes
it depends on in its signature.
"""

from decimal import Decimal

import pytest
from sqlalchemy import select

from workshop_modules.availability.selectors import AvailabilitySelector
from workshop_modules.availability.service import AvailabilityService
from workshop_modules.bikes.orm import CallStatusModel, ChecklistItemModel
from workshop_modules.bikes.selectors import BikeSelector
from workshop_modules.bikes.service import BikeWorkflowService
from workshop_modules.inventory.selectors import InventorySelector
from workshop_modules.inventory.service import InventoryLedgerService
from workshop_modules.tasks.selectors import TaskSelector
from workshop_modules.tasks.service import FohTaskService

# ---------------------------------------------------------------------------
# Services and selectors
# ---------------------------------------------------------------------------


@pytest.fixture
def ledger(session, clock):
    return InventoryLedgerService(session, clock)


@pytest.fixture
def inventory(session):
    return InventorySelector(session)


@pytest.fixture
def bike_service(session, clock):
    return BikeWorkflowService(session, clock)


@pytest.fixture
def bikes(session):
    return BikeSelector(session)


@pytest.fixture
def task_service(session, clock):
    return FohTaskService(session, clock)


@pytest.fixture
def tasks(session):
    return TaskSelector(session)


@pytest.fixture
def availability_service(session, clock):
    return AvailabilityService(session, clock)


@pytest.fixture
def availability(session):
    return AvailabilitySelector(session)


# ---------------------------------------------------------------------------
# Catalogue
# ---------------------------------------------------------------------------


@pytest.fixture
def brake_pad(ledger, admin_id):
    """Brake Pad: 25.00, 1 point, 10 in stock, low at 3."""
    repair_type, _ = ledger.add_product(
        "Brake Pad", Decimal("25.00"), admin_id,
        points=Decimal("1"), quantity=10, min_stock_level=3,
    )
    return repair_type


@pytest.fixture
def chain(ledger, admin_id):
    """Chain: 40.00, 1.5 points, 4 in stock, low at 5."""
    repair_type, _ = ledger.add_product(
        "Chain", Decimal("40.00"), admin_id,
        points=Decimal("1.5"), quantity=4, min_stock_level=5,
    )
    return repair_type


@pytest.fixture
def checklist_item_ids(session, seeded):
    return list(
        session.execute(
            select(ChecklistItemModel.id).order_by(ChecklistItemModel.sort_order)
        ).scalars()
    )


@pytest.fixture
def call_status_id(session, seeded):
    return session.execute(
        select(CallStatusModel.id).order_by(CallStatusModel.sort_order).limit(1)
    ).scalar_one()


# ---------------------------------------------------------------------------
# Bikes in a known state
# ---------------------------------------------------------------------------


@pytest.fixture
def awaiting_bike(bike_service, mechanic_id, brake_pad, seeded):
    """ABC123 (S3), diagnosed with Brake Pad: wacht_op_akkoord."""
    return bike_service.register_intake(
        "ABC123", "S3", mechanic_id, repair_type_ids=[brake_pad.id], table_number="4",
    )


@pytest.fixture
def in_repair_bike(bike_service, awaiting_bike, foh_id, mechanic_id):
    """ABC123 approved and claimed by ``mechanic_id``."""
    bike_service.approve(awaiting_bike.id, foh_id)
    return bike_service.claim(awaiting_bike.id, mechanic_id)
