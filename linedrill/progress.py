import logging

from django.db import DatabaseError

from linedrill.models import Study

logger = logging.getLogger(__name__)


class DatabaseProgressStore:
    """
    Keeps a study's visited node hashes and play settings in the database.

    Failures are logged and reported as False; the caller decides whether
    to retry. An in-progress quiz session doesn't depend on any of this.
    """

    def load_visited(self, study_id) -> list[str]:
        try:
            hashes = Study.objects.values_list("visited_node_hashes", flat=True).get(
                pk=study_id
            )
        except Study.DoesNotExist:
            logger.warning("Study #%s not found; no saved progress", study_id)
            return []
        except DatabaseError as e:
            logger.warning("Could not load progress for study #%s: %s", study_id, e)
            return []
        return list(hashes or [])

    def save_visited(self, study_id, node_hashes) -> bool:
        return self._update(study_id, visited_node_hashes=list(node_hashes))

    def clear_visited(self, study_id) -> bool:
        return self._update(study_id, visited_node_hashes=[])

    def save_settings(self, study_id, *, is_playing_white=None, is_skipping=None):
        fields = {}
        if is_playing_white is not None:
            fields["is_playing_white"] = is_playing_white
        if is_skipping is not None:
            fields["is_skipping"] = is_skipping
        if not fields:
            return True
        return self._update(study_id, **fields)

    def _update(self, study_id, **fields) -> bool:
        try:
            updated = Study.objects.filter(pk=study_id).update(**fields)
        except DatabaseError as e:
            logger.warning("Could not update study #%s: %s", study_id, e)
            return False

        if not updated:
            logger.warning("Study #%s not found; nothing saved", study_id)
            return False
        return True
