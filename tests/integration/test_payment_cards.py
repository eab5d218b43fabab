"""Integration tests for the purchasing card register."""

from datetime import date
from decimal import Decimal

import pytest
from freezegun import freeze_time

from modules.core.dtos import parse_dto
from modules.core.exceptions import ValidationError
from modules.orders.constants import OrderPosition, PaymentMethod
from modules.orders.dtos import ConfirmPurchaseDTO
from modules.treasury.constants import CardStatus
from modules.treasury.dtos import CreatePaymentCardDTO, UpdatePaymentCardDTO
from modules.treasury.exceptions import PaymentCardInUse, PaymentCardNotFound
from modules.treasury.models import PaymentCard
from modules.treasury.repositories.django_repository import PaymentCardDjangoRepository
from modules.treasury.services import PaymentCardService

pytestmark = pytest.mark.integration


@pytest.fixture()
def card_service():
    return PaymentCardService(PaymentCardDjangoRepository())


@freeze_time("2026-06-01")
class TestCardInput:
    def test_keeps_only_the_last_four_digits(self, card_service):
        dto = parse_dto(
            CreatePaymentCardDTO,
            {"card_number": "4111 1111-1111 1234", "exp_date": "2028-01-31", "cvc": "123"},
        )

        card = card_service.create_card(dto)

        assert card.last_four == "1234"
        assert card.masked_number == "****-****-****-1234"
        assert not hasattr(card, "cvc")

    @pytest.mark.parametrize(
        ("payload", "attr"),
        [
            ({"card_number": "4111 1111", "exp_date": "2028-01-31"}, "card_number"),
            ({"card_number": "4111111111111234", "exp_date": "2026-05-31"}, "exp_date"),
        ],
    )
    def test_rejects_bad_input(self, payload, attr):
        with pytest.raises(ValidationError) as exc_info:
            parse_dto(CreatePaymentCardDTO, payload)

        assert exc_info.value.attr == attr

    @pytest.mark.parametrize(
        ("exp_date", "expected"),
        [
            (date(2026, 5, 31), CardStatus.EXPIRED),
            (date(2026, 6, 20), CardStatus.EXPIRING_SOON),
            (date(2027, 6, 1), CardStatus.VALID),
        ],
    )
    def test_status(self, exp_date, expected):
        card = PaymentCard(last_four="1234", exp_date=exp_date)

        assert card.status_on(date(2026, 6, 1)) == expected


class TestCardMaintenance:
    def test_update_label_and_expiry(self, card_service, payment_card):
        card = card_service.update_card(
            payment_card.id, UpdatePaymentCardDTO(label="Backup card", exp_date=date(2031, 1, 1))
        )

        assert card.label == "Backup card"
        assert card.exp_date == date(2031, 1, 1)
        assert card.last_four == "4242"

    def test_unknown_card(self, card_service):
        with pytest.raises(PaymentCardNotFound):
            card_service.get_card("00000000-0000-0000-0000-000000000000")

    def test_delete_unused_card(self, card_service, payment_card):
        card_service.delete_card(payment_card.id)

        assert not PaymentCard.objects.filter(pk=payment_card.pk).exists()

    def test_card_used_by_an_invoice_is_kept(
        self, card_service, order_service, payment_card, make_order, fund_foreign
    ):
        fund_foreign(card=Decimal("200"))
        order = make_order(position=OrderPosition.UNDER_PURCHASE)
        order_service.confirm_purchase(
            order.id,
            ConfirmPurchaseDTO(payment_method=PaymentMethod.CARD, card_id=payment_card.id),
        )

        with pytest.raises(PaymentCardInUse):
            card_service.delete_card(payment_card.id)

        assert PaymentCard.objects.filter(pk=payment_card.pk).exists()


class TestPaymentCardApi:
    url = "/api/v1/payment-cards/"

    def test_create_and_list(self, auth_client):
        created = auth_client.post(
            self.url,
            {"card_number": "4000123412341234", "exp_date": "2099-12-31", "label": "Main"},
            format="json",
        )

        assert created.status_code == 201
        assert created.json()["masked_number"] == "****-****-****-1234"
        assert "card_number" not in created.json()

        listed = auth_client.get(self.url)
        assert listed.status_code == 200
        assert listed.json()["count"] == 1
        assert listed.json()["results"][0]["status"] == CardStatus.VALID

    def test_patch_and_delete(self, auth_client, payment_card):
        patched = auth_client.patch(
            f"{self.url}{payment_card.id}/", {"label": "Renamed"}, format="json"
        )
        assert patched.status_code == 200
        assert patched.json()["label"] == "Renamed"

        deleted = auth_client.delete(f"{self.url}{payment_card.id}/")
        assert deleted.status_code == 204

    def test_unknown_card_returns_404(self, auth_client):
        response = auth_client.get(f"{self.url}00000000-0000-0000-0000-000000000000/")

        assert response.status_code == 404

    def test_requires_permission(self, plain_client):
        assert plain_client.get(self.url).status_code == 403
