from unittest import mock

import pytest
from django.db import DatabaseError

from linedrill.models import Study
from linedrill.progress import DatabaseProgressStore


@pytest.fixture()
def store():
    return DatabaseProgressStore()


@pytest.mark.django_db
def test_save_and_load_visited(store, study):
    assert store.load_visited(study.id) == []
    assert store.save_visited(study.id, ("a", "b")) is True
    assert store.load_visited(study.id) == ["a", "b"]

    study.refresh_from_db()
    assert study.visited_node_hashes == ["a", "b"]


@pytest.mark.django_db
def test_clear_visited(store, study):
    store.save_visited(study.id, ["a"])
    assert store.clear_visited(study.id) is True
    assert store.load_visited(study.id) == []


@pytest.mark.django_db
def test_save_settings(store, study):
    assert store.save_settings(study.id, is_playing_white=False) is True
    study.refresh_from_db()
    assert study.is_playing_white is False
    assert study.is_skipping is False

    assert store.save_settings(study.id, is_skipping=True) is True
    study.refresh_from_db()
    assert study.is_playing_white is False
    assert study.is_skipping is True

    assert store.save_settings(study.id) is True


@pytest.mark.django_db
def test_missing_study(store):
    assert store.load_visited(999) == []
    assert store.save_visited(999, ["a"]) is False
    assert store.clear_visited(999) is False
    assert store.save_settings(999, is_skipping=True) is False


@pytest.mark.django_db
def test_database_errors_are_reported_not_raised(store, study, caplog):
    with mock.patch.object(
        Study.objects, "filter", side_effect=DatabaseError("disk full")
    ):
        assert store.save_visited(study.id, ["a"]) is False
        assert store.save_settings(study.id, is_playing_white=False) is False

    with mock.patch.object(
        Study.objects, "values_list", side_effect=DatabaseError("disk full")
    ):
        assert store.load_visited(study.id) == []

    assert "disk full" in caplog.text
    study.refresh_from_db()
    assert study.visited_node_hashes == []
    assert study.is_playing_white is True
