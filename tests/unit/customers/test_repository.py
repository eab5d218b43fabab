"""Unit tests for CustomerDjangoRepository.

Validates:
- Look-ups return ``None`` for unknown or malformed ids.
- ``get_by_phone`` matches the normalised handle.
- ``save`` stores the phone normalised.
"""

from __future__ import annotations

import uuid

import pytest

from modules.customers.models import Customer
from modules.customers.repositories.django_repository import CustomerDjangoRepository

pytestmark = pytest.mark.unit


@pytest.fixture()
def repo():
    return CustomerDjangoRepository()


class TestGetById:
    def test_existing(self, repo, customer):
        assert repo.get_by_id(str(customer.id)) == customer

    def test_unknown(self, repo):
        assert repo.get_by_id(str(uuid.uuid4())) is None

    def test_malformed(self, repo):
        assert repo.get_by_id("not-a-uuid") is None
        assert repo.get_for_update("not-a-uuid") is None


class TestGetByPhone:
    def test_matches_normalised_handle(self, repo, customer):
        assert repo.get_by_phone("091-100-0001") == customer

    def test_unknown_handle(self, repo, customer):
        assert repo.get_by_phone("0919999999") is None


class TestSaveAndList:
    def test_save_normalises_phone(self, repo):
        customer = repo.save(Customer(name="Layla", phone="091 100 0003"))
        customer.refresh_from_db()
        assert customer.phone == "0911000003"

    def test_list_filters(self, repo, customer, other_customer):
        other_customer.is_active = False
        other_customer.save()

        active = list(repo.list({"is_active": True}))

        assert active == [customer]

    def test_str_masks_phone(self, customer):
        assert "0911000001" not in str(customer)
        assert str(customer).endswith("(***0001)")
