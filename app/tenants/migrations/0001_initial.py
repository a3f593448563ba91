from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Restaurant",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, help_text="Timestamp when this record was created")),
                ("updated_at", models.DateTimeField(auto_now=True, help_text="Timestamp when this record was last modified")),
                ("name", models.CharField(max_length=200)),
                ("phone_number", models.CharField(blank=True, default="", max_length=32)),
                ("admin_settings", models.JSONField(blank=True, default=dict, help_text="Tenant configuration: payment_gateway, sms_templates, email_templates")),
            ],
            options={
                "verbose_name": "restaurant",
                "verbose_name_plural": "restaurants",
                "ordering": ["name"],
            },
        ),
    ]
