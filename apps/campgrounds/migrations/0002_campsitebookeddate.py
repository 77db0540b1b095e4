import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("bookings", "0001_initial"),
        ("campgrounds", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="CampsiteBookedDate",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("start_date", models.DateField()),
                ("end_date", models.DateField()),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "booking",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="booked_date",
                        to="bookings.booking",
                    ),
                ),
                (
                    "campsite",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="booked_dates",
                        to="campgrounds.campsite",
                    ),
                ),
            ],
            options={
                "verbose_name": "Campsite booked date",
                "verbose_name_plural": "Campsite booked dates",
                "ordering": ["start_date"],
                "indexes": [
                    models.Index(fields=["campsite", "start_date", "end_date"], name="booked_date_range_idx"),
                ],
            },
        ),
    ]
