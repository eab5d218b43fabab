from datetime import date, timedelta
from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from modules.boxes.repositories.django_repository import BoxDjangoRepository
from modules.boxes.services import BoxService
from modules.carts.repositories.django_repository import CartDjangoRepository
from modules.carts.services import CartService
from modules.collections.repositories.django_repository import CollectionDjangoRepository
from modules.collections.services import CollectionService
from modules.customers.models import Customer
from modules.orders.constants import OrderPosition
from modules.orders.dtos import CreateOrderDTO
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.views import build_order_service
from modules.shipments.models import Carrier
from modules.shipments.repositories.django_repository import ShipmentDjangoRepository
from modules.shipments.services import ShipmentService
from modules.treasury.constants import Currency, Subaccount
from modules.treasury.models import PaymentCard
from modules.treasury.repositories.django_repository import TreasuryDjangoRepository
from modules.treasury.services import TreasuryLedger

User = get_user_model()


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


@pytest.fixture()
def operator():
    return User.objects.create_superuser(username="operator", password="operator-pass")


@pytest.fixture()
def auth_client(operator):
    """APIClient force-authenticated as a superuser (every permission granted)."""
    client = APIClient()
    client.force_authenticate(user=operator)
    return client


@pytest.fixture()
def plain_client():
    """APIClient authenticated as a user without any permission."""
    client = APIClient()
    user = User.objects.create_user(username="no-perms", password="no-perms-pass")
    client.force_authenticate(user=user)
    return client


# ---------------------------------------------------------------------------
# Services wired to the Django repositories
# ---------------------------------------------------------------------------


@pytest.fixture()
def order_repository():
    return OrderDjangoRepository()


@pytest.fixture()
def order_service():
    return build_order_service()


@pytest.fixture()
def cart_service(order_repository):
    return CartService(CartDjangoRepository(), order_repository)


@pytest.fixture()
def box_service(order_repository):
    return BoxService(BoxDjangoRepository(), order_repository)


@pytest.fixture()
def collection_service(order_repository):
    return CollectionService(CollectionDjangoRepository(), order_repository)


@pytest.fixture()
def shipment_service(order_repository):
    return ShipmentService(ShipmentDjangoRepository(), BoxDjangoRepository(), order_repository)


@pytest.fixture()
def ledger():
    return TreasuryLedger(TreasuryDjangoRepository())


# ---------------------------------------------------------------------------
# Domain data
# ---------------------------------------------------------------------------


@pytest.fixture()
def customer():
    return Customer.objects.create(name="Amira Haddad", phone="0911000001", is_active=True)


@pytest.fixture()
def other_customer():
    return Customer.objects.create(name="Omar Salem", phone="0911000002", is_active=True)


@pytest.fixture()
def carrier():
    return Carrier.objects.create(name="Darb Express")


@pytest.fixture()
def payment_card():
    return PaymentCard.objects.create(
        label="Purchasing card", last_four="4242", exp_date=date.today() + timedelta(days=365)
    )


@pytest.fixture()
def make_order(order_service, customer):
    """Create an order through the service; ``position`` moves it afterwards."""

    def _make(position=None, customer_phone=None, **overrides):
        data = {
            "customer_phone": customer_phone or customer.phone,
            "title": "Leather handbag",
            "city_id": 1,
            "area_id": 2,
            "foreign_price": Decimal("10.00"),
        }
        data.update(overrides)
        order = order_service.create_order(CreateOrderDTO(**data))
        if position is not None and position != OrderPosition.NEW:
            order = order_service.advance_position(order.id, position)
        return order

    return _make


@pytest.fixture()
def fund_foreign(ledger):
    """Top up the foreign cash and card balances."""

    def _fund(cash=Decimal("0"), card=Decimal("0")):
        if cash:
            ledger.credit(Currency.FOREIGN, Subaccount.CASH, Decimal(cash))
        if card:
            ledger.credit(Currency.FOREIGN, Subaccount.CARD, Decimal(card))
        return ledger.balances()

    return _fund
