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
            name="ReturnSheet",
            fields=[
                ("id",                  models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("rider_name",          models.CharField(max_length=120)),
                ("rider_code",          models.CharField(max_length=20)),
                ("consignment_numbers", models.JSONField(default=list)),
                ("order_statuses",      models.JSONField(default=list)),
                ("count",               models.PositiveIntegerField(default=0)),
                ("outcome",             models.CharField(
                    choices=[
                        ("to_be_sent_back", "To be sent back"),
                        ("received_at_office", "Received at office"),
                        ("other", "Other"),
                    ],
                    db_index=True,
                    default="received_at_office",
                    max_length=20,
                )),
                ("remarks",             models.TextField(blank=True)),
                ("created_at",          models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ("updated_at",          models.DateTimeField(auto_now=True)),
                ("rider",               models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name="return_sheets",
                    to=settings.AUTH_USER_MODEL,
                )),
            ],
            options={"ordering": ["-created_at", "-id"]},
        ),
        migrations.AddIndex(
            model_name="returnsheet",
            index=models.Index(fields=["rider", "outcome", "created_at"], name="return_rider_day_idx"),
        ),
    ]
