from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Submission",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("envelope_id", models.CharField(max_length=64, unique=True)),
                ("form_id", models.PositiveBigIntegerField(db_index=True)),
                ("submitter_id", models.PositiveBigIntegerField(blank=True, null=True)),
                ("answers", models.JSONField(default=dict)),
                ("client_ip", models.CharField(blank=True, max_length=45)),
                ("user_agent", models.TextField(blank=True)),
                ("submitted_at", models.DateTimeField()),
                ("created_at", models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
            ],
            options={
                "db_table": "submissions",
                "indexes": [
                    models.Index(fields=["form_id", "created_at"], name="submissions_form_created_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="SubmissionAnswer",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("question_id", models.CharField(max_length=128)),
                (
                    "kind",
                    models.CharField(
                        choices=[("scalar", "Scalar"), ("list", "List"), ("item", "List Item")],
                        max_length=10,
                    ),
                ),
                ("value", models.TextField(blank=True, null=True)),
                ("size", models.PositiveIntegerField(blank=True, null=True)),
                (
                    "submission",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="answer_index",
                        to="submissions.submission",
                    ),
                ),
            ],
            options={
                "db_table": "submission_answers",
                "indexes": [
                    models.Index(fields=["submission", "question_id", "kind"], name="sub_answers_lookup_idx"),
                ],
            },
        ),
    ]
