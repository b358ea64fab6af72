import uuid6
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Supplier",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid6.uuid7,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("name", models.CharField(max_length=200, unique=True)),
                ("category", models.CharField(max_length=100)),
                (
                    "contact_person_name",
                    models.CharField(blank=True, default="", max_length=200),
                ),
                (
                    "phone_number",
                    models.CharField(blank=True, default="", max_length=50),
                ),
                (
                    "email_address",
                    models.EmailField(blank=True, default="", max_length=200),
                ),
                (
                    "physical_address",
                    models.CharField(blank=True, default="", max_length=500),
                ),
                ("is_active", models.BooleanField(default=True)),
            ],
            options={
                "db_table": "suppliers",
                "ordering": ["name"],
                "indexes": [
                    models.Index(
                        fields=["category", "is_active"],
                        name="suppliers_category_active_idx",
                    ),
                ],
            },
        ),
    ]
