from django.db.models.signals import pre_save
from django.dispatch import receiver

from linedrill import util
from linedrill.models import Study
from linedrill.tree_index import fen_before_first_branch


@receiver(pre_save, sender=Study)
def normalize_study(sender, instance, **kwargs):
    instance.title = (instance.title or "").strip()
    instance.move_text = (instance.move_text or "").strip()
    instance.notes = util.strip_all_html(instance.notes or "").strip()
    instance.fen_before_first_branch = fen_before_first_branch(instance.move_text)
