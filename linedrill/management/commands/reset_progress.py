from django.core.management.base import BaseCommand, CommandError

from linedrill.progress import DatabaseProgressStore


class Command(BaseCommand):
    help = "Forget which lines of a study have been drilled"  # noqa: A003

    def add_arguments(self, parser):
        parser.add_argument("study_id", type=int, help="ID of the study")

    def handle(self, *args, **kwargs):
        study_id = kwargs["study_id"]
        if not DatabaseProgressStore().clear_visited(study_id):
            raise CommandError(f"Could not reset progress for study #{study_id}")
        self.stdout.write(f"🧹 Progress cleared for study #{study_id}")
