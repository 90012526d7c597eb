import pytest
from django.core.exceptions import ValidationError

from linedrill.models import Study
from linedrill.tests import RUY_LOPEZ, board_after
from linedrill.util import START_FEN


@pytest.mark.parametrize(
    "title, move_text, bad_fields",
    [
        ("", "1. e4", {"title"}),
        ("   ", "1. e4", {"title"}),
        ("x" * 101, "1. e4", {"title"}),
        ("Ruy", "", {"move_text"}),
        ("", "  ", {"title", "move_text"}),
    ],
)
def test_clean(title, move_text, bad_fields):
    study = Study(title=title, move_text=move_text)
    with pytest.raises(ValidationError) as excinfo:
        study.clean()
    assert set(excinfo.value.message_dict) == bad_fields


def test_clean_accepts_a_padded_title():
    Study(title="  " + "x" * 100 + "  ", move_text="1. e4").clean()


def test_color():
    assert Study(is_playing_white=True).color == "white"
    assert Study(is_playing_white=False).color == "black"


@pytest.mark.django_db
def test_save_normalizes_fields():
    study = Study.objects.create(
        title="  Ruy Lopez  ",
        move_text=f"\n{RUY_LOPEZ}\n",
        notes="<p>Main line</p><script>alert(1)</script>",
    )
    study.refresh_from_db()

    assert study.title == "Ruy Lopez"
    assert study.move_text == RUY_LOPEZ
    assert study.notes == "Main line"
    assert study.fen_before_first_branch == board_after("e4 e5 Nf3 Nc6 Bb5 a6")
    assert study.visited_node_hashes == []
    assert str(study) == f"Ruy Lopez ({study.id})"


@pytest.mark.django_db
def test_fen_before_first_branch_follows_the_move_text(study):
    study.move_text = "1. d4 ( 1. e4 )"
    study.save()
    study.refresh_from_db()
    assert study.fen_before_first_branch == START_FEN
