from django.db import migrations, models

import apps.domains.forms.models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Form",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "form_key",
                    models.CharField(
                        default=apps.domains.forms.models.generate_form_key,
                        max_length=20,
                        unique=True,
                    ),
                ),
                ("creator_id", models.PositiveBigIntegerField(db_index=True)),
                ("title", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True)),
                ("definition", models.JSONField(default=dict)),
                (
                    "status",
                    models.PositiveSmallIntegerField(
                        choices=[(1, "Draft"), (2, "Published"), (3, "Closed")],
                        default=1,
                    ),
                ),
            ],
            options={
                "db_table": "forms",
                "indexes": [
                    models.Index(fields=["creator_id", "created_at"], name="forms_creator_created_idx"),
                ],
            },
        ),
    ]
