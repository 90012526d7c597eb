import pytest

from linedrill.models import Study
from linedrill.tests import RUY_LOPEZ, ManualScheduler


@pytest.fixture()
def scheduler():
    return ManualScheduler()


@pytest.fixture()
def study(db):
    return Study.objects.create(title="Ruy Lopez", move_text=RUY_LOPEZ)
