import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="DeliverySheet",
            fields=[
                ("id",                  models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("rider_name",          models.CharField(max_length=120)),
                ("rider_code",          models.CharField(max_length=20)),
                ("consignment_numbers", models.JSONField(default=list)),
                ("count",               models.PositiveIntegerField(default=0)),
                ("status",              models.CharField(
                    choices=[
                        ("active", "Active"),
                        ("pending", "Pending"),
                        ("in-transit", "In Transit"),
                        ("delivered", "Delivered"),
                        ("cancelled", "Cancelled"),
                        ("completed", "Completed"),
                    ],
                    db_index=True,
                    default="active",
                    max_length=12,
                )),
                ("remarks",             models.TextField(blank=True)),
                ("completed_at",        models.DateTimeField(blank=True, null=True)),
                ("created_at",          models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ("updated_at",          models.DateTimeField(auto_now=True)),
                ("rider",               models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name="delivery_sheets",
                    to=settings.AUTH_USER_MODEL,
                )),
            ],
            options={"ordering": ["-created_at", "-id"]},
        ),
        migrations.AddIndex(
            model_name="deliverysheet",
            index=models.Index(fields=["rider", "status"], name="sheet_rider_status_idx"),
        ),
        migrations.CreateModel(
            name="ActiveAssignment",
            fields=[
                ("id",                 models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("consignment_number", models.CharField(max_length=40, unique=True)),
                ("claimed_at",         models.DateTimeField(auto_now_add=True)),
                ("sheet",              models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="claims",
                    to="assignments.deliverysheet",
                )),
            ],
        ),
    ]
