import django.utils.timezone
from django.db import migrations, models


STATUS_CHOICES = [
    ("pending", "Pending"),
    ("in-transit", "In Transit"),
    ("delivered", "Delivered"),
    ("returned", "Returned"),
    ("cancelled", "Cancelled"),
]

SOURCE_CHOICES = [
    ("agency_booking", "Agency booking"),
    ("direct_booking", "Direct booking"),
]


def booking_fields():
    return [
        ("id",                 models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
        ("consignment_number", models.CharField(max_length=40, unique=True)),
        ("consignee_name",     models.CharField(blank=True, max_length=120)),
        ("consignee_address",  models.CharField(blank=True, max_length=500)),
        ("consignee_mobile",   models.CharField(blank=True, max_length=20)),
        ("pieces",             models.IntegerField(default=1)),
        ("weight",             models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
        ("cod_amount",         models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
        ("destination_city",   models.CharField(blank=True, max_length=80)),
        ("origin_city",        models.CharField(blank=True, max_length=80)),
        ("service_type",       models.CharField(blank=True, max_length=40)),
        ("status",             models.CharField(choices=STATUS_CHOICES, db_index=True, default="pending", max_length=12)),
        ("remarks",            models.TextField(blank=True)),
        ("delivery_date",      models.DateTimeField(blank=True, null=True)),
        ("validation_flags",   models.JSONField(blank=True, null=True)),
        ("created_at",         models.DateTimeField(auto_now_add=True)),
        ("updated_at",         models.DateTimeField(auto_now=True)),
    ]


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="AgencyBooking",
            fields=booking_fields() + [
                ("account_no",   models.CharField(blank=True, db_index=True, max_length=30)),
                ("agent_name",   models.CharField(blank=True, max_length=120)),
                ("reference_no", models.CharField(blank=True, max_length=60)),
                ("booking_date", models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
            ],
            options={"ordering": ["-booking_date"], "abstract": False},
        ),
        migrations.CreateModel(
            name="DirectBooking",
            fields=booking_fields() + [
                ("customer_id",           models.CharField(db_index=True, max_length=64)),
                ("created_by",            models.CharField(choices=[("admin", "Admin"), ("customer", "Customer")], max_length=10)),
                ("consignee_email",       models.EmailField(blank=True, max_length=254)),
                ("fragile",               models.BooleanField(default=False)),
                ("delivery_charges",      models.DecimalField(decimal_places=2, default=0, max_digits=10)),
                ("product_detail",        models.CharField(blank=True, max_length=255)),
                ("customer_reference_no", models.CharField(blank=True, max_length=60)),
                ("booked_on",             models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
            ],
            options={"ordering": ["-booked_on"], "abstract": False},
        ),
        migrations.CreateModel(
            name="StatusEntry",
            fields=[
                ("id",                 models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("source",             models.CharField(choices=SOURCE_CHOICES, max_length=16)),
                ("consignment_number", models.CharField(max_length=40)),
                ("status",             models.CharField(choices=STATUS_CHOICES, max_length=12)),
                ("reason",             models.CharField(blank=True, max_length=255)),
                ("remarks",            models.TextField(blank=True)),
                ("updated_by",         models.CharField(default="system", max_length=64)),
                ("timestamp",          models.DateTimeField(default=django.utils.timezone.now)),
            ],
            options={"ordering": ["timestamp", "id"]},
        ),
        migrations.AddIndex(
            model_name="statusentry",
            index=models.Index(fields=["source", "consignment_number"], name="cons_history_number_idx"),
        ),
        migrations.CreateModel(
            name="PropagationFailure",
            fields=[
                ("id",                 models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("consignment_number", models.CharField(db_index=True, max_length=40)),
                ("target",             models.CharField(choices=SOURCE_CHOICES, max_length=16)),
                ("status",             models.CharField(choices=STATUS_CHOICES, max_length=12)),
                ("entry",              models.JSONField(default=dict)),
                ("attempts",           models.PositiveIntegerField(default=0)),
                ("last_error",         models.TextField(blank=True)),
                ("resolved",           models.BooleanField(db_index=True, default=False)),
                ("created_at",         models.DateTimeField(auto_now_add=True)),
                ("updated_at",         models.DateTimeField(auto_now=True)),
            ],
            options={"ordering": ["created_at"]},
        ),
    ]
