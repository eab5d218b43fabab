from __future__ import annotations

import random
from datetime import date, timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction

from modules.customers.models import Customer
from modules.orders.constants import OrderPosition, PaymentMethod
from modules.orders.dtos import ConfirmPurchaseDTO, CreateOrderDTO
from modules.orders.views import build_order_service
from modules.shipments.models import Carrier
from modules.treasury.constants import Currency, Subaccount
from modules.treasury.models import PaymentCard
from modules.treasury.repositories.django_repository import TreasuryDjangoRepository
from modules.treasury.services import TreasuryLedger


class Command(BaseCommand):
    help = "Seed database with realistic development data."

    @transaction.atomic
    def handle(self, *args, **options):
        random.seed(42)
        self.stdout.write("Seeding development data...")

        users_created = self._seed_users()
        customers = self._seed_customers()
        carriers = self._seed_carriers()
        card = self._seed_treasury()
        orders_created = self._seed_orders(customers, card)

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"users={users_created}, "
                f"customers={len(customers)}, "
                f"carriers={len(carriers)}, "
                f"orders={orders_created}"
            )
        )

    def _seed_users(self) -> int:
        User = get_user_model()
        created = 0
        if not User.objects.filter(username="admin").exists():
            User.objects.create_superuser("admin", password="admin123")
            created += 1
        if not User.objects.filter(username="operator").exists():
            User.objects.create_user("operator", password="operator123", is_staff=True)
            created += 1
        return created

    def _seed_customers(self) -> list[Customer]:
        self.stdout.write("Creating customers...")
        customers: list[Customer] = []
        seed_customers = [
            ("Amira Haddad", "0911000001", "Tripoli"),
            ("Omar Salem", "0911000002", "Benghazi"),
            ("Layla Nasser", "0911000003", "Misrata"),
            ("Yusuf Karim", "0911000004", "Tripoli"),
            ("Sara Fathi", "0911000005", "Zawiya"),
        ]
        for name, phone, city in seed_customers:
            customer, _ = Customer.objects.get_or_create(
                phone=phone,
                defaults={"name": name, "city": city, "is_active": True},
            )
            customers.append(customer)
        self.stdout.write(self.style.SUCCESS("Creating customers... Done!"))
        return customers

    def _seed_carriers(self) -> list[Carrier]:
        carriers = []
        for name in ("Darb Express", "Sahara Freight"):
            carrier, _ = Carrier.objects.get_or_create(name=name)
            carriers.append(carrier)
        return carriers

    def _seed_treasury(self) -> PaymentCard:
        self.stdout.write("Funding treasury...")
        ledger = TreasuryLedger(TreasuryDjangoRepository())
        ledger.set_balance(Currency.LOCAL, Subaccount.TOTAL, Decimal("50000.00"), notes="Seed")
        ledger.set_balance(Currency.FOREIGN, Subaccount.CASH, Decimal("5000.00"), notes="Seed")
        ledger.set_balance(Currency.FOREIGN, Subaccount.CARD, Decimal("5000.00"), notes="Seed")
        card, _ = PaymentCard.objects.get_or_create(
            last_four="4242",
            defaults={"label": "Purchasing card", "exp_date": date.today() + timedelta(days=730)},
        )
        return card

    def _seed_orders(self, customers: list[Customer], card: PaymentCard) -> int:
        self.stdout.write("Creating orders...")
        service = build_order_service()
        catalog = [
            ("Leather handbag", Decimal("45.00")),
            ("Running shoes", Decimal("60.00")),
            ("Wireless earbuds", Decimal("35.50")),
            ("Silk scarf", Decimal("12.00")),
            ("Smart watch strap", Decimal("9.99")),
        ]
        created = 0
        for i in range(20):
            customer = random.choice(customers)
            title, price = random.choice(catalog)
            order = service.create_order(
                CreateOrderDTO(
                    customer_phone=customer.phone,
                    title=title,
                    city_id=1,
                    area_id=random.randint(1, 5),
                    foreign_price=price,
                    notes=f"Seed order {i + 1}",
                )
            )
            created += 1
            if i % 3 == 0:
                service.advance_position(order.id, OrderPosition.UNDER_PURCHASE)
                method = random.choice(list(PaymentMethod))
                service.confirm_purchase(
                    order.id,
                    ConfirmPurchaseDTO(
                        payment_method=method,
                        card_id=card.id if method == PaymentMethod.CARD else None,
                    ),
                )
        self.stdout.write(self.style.SUCCESS("Creating orders... Done!"))
        return created
