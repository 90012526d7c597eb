import os
import re
from pathlib import Path

from django.core.exceptions import ValidationError
from django.core.management.base import BaseCommand

from linedrill import util
from linedrill.models import Study
from linedrill.move_tree import TreeBuildReport
from linedrill.tree_index import index_move_text

# [Event "?"] and friends; only the movetext is kept
TAG_PAIR_RE = re.compile(r"^\s*\[[^\]]*\]\s*$", re.MULTILINE)


class Command(BaseCommand):
    help = "Import a PGN file as a study"  # noqa: A003

    def add_arguments(self, parser):
        parser.add_argument("path", type=str, help="Path to the PGN file")
        parser.add_argument(
            "--title", type=str, default="", help="Study title (default: file name)"
        )
        parser.add_argument("--notes", type=str, default="", help="Study notes")
        parser.add_argument("--black", action="store_true", help="Play as black")
        parser.add_argument(
            "--skip", action="store_true", help="Skip ahead to the first branch"
        )

    def handle(self, *args, **kwargs):
        file_path = kwargs["path"]

        self.stdout.write(f"Importing from file: {file_path}")

        if not os.path.exists(file_path):
            self.stderr.write("❌ File does not exist")
            return

        with open(file_path, "r") as file:
            move_text = TAG_PAIR_RE.sub("", file.read()).strip()

        study = Study(
            title=kwargs["title"] or Path(file_path).stem,
            move_text=move_text,
            notes=kwargs["notes"],
            is_playing_white=not kwargs["black"],
            is_skipping=kwargs["skip"],
        )
        try:
            study.full_clean()
        except ValidationError as e:
            self.stderr.write(f"❌ Invalid study: {e}")
            return
        study.save()

        report = TreeBuildReport()
        index = index_move_text(study.move_text, report=report)
        lines = util.plural("line", index.leaf_count)
        self.stdout.write(f"✅ Imported study #{study.id}: {study.title} ({lines})")
        for skipped in report.skipped:
            self.stdout.write(f"⚠️  Truncated {skipped}")
