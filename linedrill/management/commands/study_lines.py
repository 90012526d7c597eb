from django.core.management.base import BaseCommand, CommandError

from linedrill.models import Study
from linedrill.move_tree import TreeBuildReport, build_move_tree
from linedrill.pgn_lines import count_plies_to_first_branch, move_text_to_mainlines
from linedrill.tree_index import build_tree_index


class Command(BaseCommand):
    help = "Print the lines a study will drill"  # noqa: A003

    def add_arguments(self, parser):
        parser.add_argument("study_id", type=int, help="ID of the study")

    def handle(self, *args, **kwargs):
        study_id = kwargs["study_id"]
        try:
            study = Study.objects.get(pk=study_id)
        except Study.DoesNotExist:
            raise CommandError(f"Study #{study_id} not found")

        mainlines = move_text_to_mainlines(study.move_text)
        report = TreeBuildReport()
        index = build_tree_index(build_move_tree(mainlines, report=report))
        visited = set(study.visited_node_hashes or [])

        self.stdout.write(f"{study} playing {study.color}")
        for number, line in enumerate(mainlines, start=1):
            self.stdout.write(f"{number:>3}. {line}")

        self.stdout.write("")
        done = sum(1 for h in index.leaf_hashes_in_order if h in visited)
        self.stdout.write(f"lines: {index.leaf_count} ({done} visited)")
        skip_plies = count_plies_to_first_branch(study.move_text)
        self.stdout.write(f"plies to first branch: {skip_plies}")
        self.stdout.write(f"fen before first branch: {study.fen_before_first_branch}")

        for skipped in report.skipped:
            self.stdout.write(f"⚠️  Truncated {skipped}")
