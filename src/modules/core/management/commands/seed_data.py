from __future__ import annotations

import random
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand

from modules.core.authorization import ActorContext
from modules.orders.dtos import CreateOrderDTO, CreateOrderItemDTO
from modules.orders.exceptions import InsufficientStock
from modules.orders.models import Order
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.services import OrderService
from modules.products.models import Product
from modules.products.repositories.django_repository import ProductDjangoRepository
from modules.suppliers.models import Supplier


class Command(BaseCommand):
    help = "Seed database with realistic development data."

    def add_arguments(self, parser):
        parser.add_argument(
            "--orders",
            type=int,
            default=20,
            help="Number of orders to create when none exist yet.",
        )

    def handle(self, *args, **options):
        random.seed(42)
        self.stdout.write("Seeding development data...")

        users_created = self._seed_users()
        suppliers = self._seed_suppliers()
        products = self._seed_products(suppliers)
        orders_created = self._seed_orders(products, options["orders"])

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"users={users_created}, "
                f"suppliers={len(suppliers)}, "
                f"products={len(products)}, "
                f"orders={orders_created}"
            )
        )

    def _seed_users(self) -> int:
        User = get_user_model()
        created = 0
        if not User.objects.filter(username="admin").exists():
            User.objects.create_superuser(
                "admin", email="admin@example.com", password="admin123"
            )
            created += 1
        if not User.objects.filter(username="user").exists():
            User.objects.create_user(
                "user",
                email="user@example.com",
                password="user123",
                first_name="Sample",
                last_name="User",
            )
            created += 1
        return created

    def _seed_suppliers(self) -> dict[str, Supplier]:
        self.stdout.write("Creating suppliers...")
        seed_suppliers = [
            ("Northwind Electronics", "Electronics", "Ana Lane", "ana@northwind.test"),
            ("Oakline Furniture", "Furniture", "Ben Ortiz", "ben@oakline.test"),
            ("Paper Trail Co", "Office", "Cleo Park", "cleo@papertrail.test"),
        ]
        suppliers: dict[str, Supplier] = {}
        for name, category, contact, email in seed_suppliers:
            supplier, _ = Supplier.objects.get_or_create(
                name=name,
                defaults={
                    "category": category,
                    "contact_person_name": contact,
                    "email_address": email,
                    "is_active": True,
                },
            )
            suppliers[category] = supplier
        self.stdout.write(self.style.SUCCESS("Creating suppliers... Done!"))
        return suppliers

    def _seed_products(self, suppliers: dict[str, Supplier]) -> list[Product]:
        self.stdout.write("Creating products...")
        products: list[Product] = []
        catalog = [
            ("ELEC-001", 'Monitor 27"', "Electronics", "899.00", "1299.90"),
            ("ELEC-002", "Mechanical Keyboard", "Electronics", "210.00", "399.90"),
            ("ELEC-003", "Gaming Mouse", "Electronics", "120.00", "249.90"),
            ("ELEC-004", 'Laptop 14"', "Electronics", "2800.00", "3999.00"),
            ("FURN-001", "Office Desk", "Furniture", "540.00", "899.00"),
            ("FURN-002", "Ergonomic Chair", "Furniture", "900.00", "1499.00"),
            ("FURN-003", "Bookshelf", "Furniture", "380.00", "699.00"),
            ("OFF-001", "A4 Paper", "Office", "15.00", "29.90"),
            ("OFF-002", "Blue Pen", "Office", "1.50", "4.90"),
            ("OFF-003", "Notebook", "Office", "8.00", "19.90"),
            ("OFF-004", "Stapler", "Office", "18.00", "39.90"),
            ("OFF-005", "Desk Calculator", "Office", "45.00", "89.90"),
        ]
        for sku, name, category, cost, price in catalog:
            product, _ = Product.objects.get_or_create(
                sku=sku,
                defaults={
                    "name": name,
                    "category": category,
                    "cost_price": Decimal(cost),
                    "selling_price": Decimal(price),
                    "stock_quantity": random.randint(0, 120),
                    "minimum_stock_level": 10,
                    "supplier": suppliers.get(category),
                },
            )
            products.append(product)
        self.stdout.write(self.style.SUCCESS("Creating products... Done!"))
        return products

    def _seed_orders(self, products: list[Product], count: int) -> int:
        self.stdout.write("Creating orders...")
        if Order.objects.exists():
            self.stdout.write(self.style.WARNING("Skipping orders (already seeded)."))
            return 0
        if not products:
            self.stdout.write(self.style.WARNING("Skipping orders (no products)."))
            return 0

        service = OrderService(
            order_repository=OrderDjangoRepository(),
            product_repository=ProductDjangoRepository(),
        )
        shopper = ActorContext.from_user(
            get_user_model().objects.filter(username="user").first()
        )
        system = ActorContext.system()

        orders_created = 0
        for i in range(count):
            picked = random.sample(products, k=min(random.randint(1, 3), len(products)))
            dto = CreateOrderDTO(
                items=[
                    CreateOrderItemDTO(
                        product_id=product.id, quantity=random.randint(1, 3)
                    )
                    for product in picked
                ],
                customer_name=f"Walk-in customer {i + 1}",
                customer_email=f"customer{i + 1}@example.com",
                notes=f"Seed order {i + 1}",
            )
            # Half the orders go through the review queue as Pending.
            actor = shopper if i % 2 else system
            try:
                service.create_order(dto, actor)
            except InsufficientStock as exc:
                self.stdout.write(self.style.WARNING(f"Order {i + 1} skipped: {exc}"))
                continue
            orders_created += 1

        self.stdout.write(self.style.SUCCESS("Creating orders... Done!"))
        return orders_created
