import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Study",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("title", models.CharField(max_length=100)),
                ("move_text", models.TextField()),
                ("notes", models.TextField(blank=True, default="")),
                ("is_public", models.BooleanField(default=False)),
                ("is_playing_white", models.BooleanField(default=True)),
                ("is_skipping", models.BooleanField(default=False)),
                ("visited_node_hashes", models.JSONField(blank=True, default=list)),
                (
                    "fen_before_first_branch",
                    models.CharField(
                        default=(
                            "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"
                        ),
                        max_length=100,
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(
                        default=django.utils.timezone.now, editable=False
                    ),
                ),
            ],
            options={
                "verbose_name_plural": "studies",
            },
        ),
    ]
