import django.db.models.deletion
import uuid
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("auth", "0012_alter_user_first_name_max_length"),
    ]

    operations = [
        migrations.CreateModel(
            name="Agent",
            fields=[
                ("password",     models.CharField(max_length=128, verbose_name="password")),
                ("last_login",   models.DateTimeField(blank=True, null=True, verbose_name="last login")),
                ("is_superuser", models.BooleanField(
                    default=False,
                    help_text="Designates that this user has all permissions without explicitly assigning them.",
                    verbose_name="superuser status",
                )),
                ("id",           models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("phone",        models.CharField(max_length=15, unique=True)),
                ("full_name",    models.CharField(max_length=120)),
                ("role",         models.CharField(
                    choices=[
                        ("ADMIN", "Administrator"),
                        ("STAFF", "Back-office Staff"),
                        ("CUSTOMER", "Business Customer"),
                        ("RIDER", "Delivery Rider"),
                    ],
                    default="CUSTOMER",
                    max_length=12,
                )),
                ("account_no",   models.CharField(blank=True, max_length=30, null=True, unique=True)),
                ("is_active",    models.BooleanField(default=True)),
                ("is_staff",     models.BooleanField(default=False)),
                ("created_at",   models.DateTimeField(auto_now_add=True)),
                ("groups",       models.ManyToManyField(
                    blank=True,
                    help_text="The groups this user belongs to. A user will get all permissions granted to each of their groups.",
                    related_name="user_set",
                    related_query_name="user",
                    to="auth.group",
                    verbose_name="groups",
                )),
                ("user_permissions", models.ManyToManyField(
                    blank=True,
                    help_text="Specific permissions for this user.",
                    related_name="user_set",
                    related_query_name="user",
                    to="auth.permission",
                    verbose_name="user permissions",
                )),
            ],
            options={"verbose_name": "Agent"},
        ),
        migrations.AddIndex(
            model_name="agent",
            index=models.Index(fields=["role"], name="auth_agent_role_idx"),
        ),
        migrations.CreateModel(
            name="RiderProfile",
            fields=[
                ("id",          models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("rider_code",  models.CharField(max_length=20, unique=True)),
                ("mobile_no",   models.CharField(max_length=15, unique=True)),
                ("cnic_no",     models.CharField(blank=True, max_length=13)),
                ("address",     models.CharField(blank=True, max_length=500)),
                ("active",      models.BooleanField(default=True)),
                ("created_at",  models.DateTimeField(auto_now_add=True)),
                ("agent",       models.OneToOneField(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="rider_profile",
                    to="authentication.agent",
                )),
            ],
        ),
    ]
