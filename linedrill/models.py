from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

from linedrill.util import START_FEN

TITLE_MAX_LENGTH = 100


class Study(models.Model):
    """
    A PGN movetext to drill, plus the learner's settings and progress.

    visited_node_hashes holds node identities (see move_tree.hash_move_node)
    rather than line numbers, so progress survives edits to the movetext
    for every line that is still there.
    """

    title = models.CharField(max_length=TITLE_MAX_LENGTH)
    move_text = models.TextField()
    notes = models.TextField(default="", blank=True)
    is_public = models.BooleanField(default=False)
    is_playing_white = models.BooleanField(default=True)
    is_skipping = models.BooleanField(default=False)
    visited_node_hashes = models.JSONField(default=list, blank=True)
    fen_before_first_branch = models.CharField(max_length=100, default=START_FEN)
    created_at = models.DateTimeField(default=timezone.now, editable=False)

    class Meta:
        verbose_name_plural = "studies"

    def __str__(self):
        return f"{self.title} ({self.id})"

    def clean(self):
        errors = {}
        if not (self.title or "").strip():
            errors["title"] = "Title is required."
        elif len(self.title.strip()) > TITLE_MAX_LENGTH:
            errors["title"] = f"Title is limited to {TITLE_MAX_LENGTH} characters."
        if not (self.move_text or "").strip():
            errors["move_text"] = "Movetext is required."
        if errors:
            raise ValidationError(errors)

    @property
    def color(self):
        return "white" if self.is_playing_white else "black"
