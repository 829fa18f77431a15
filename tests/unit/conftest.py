import pytest  # type: ignore

from deptree.adaptors.timing import SystemClockTimer
from deptree.application.config import settings


@pytest.fixture(scope="module", autouse=True)
def configure_unit_tests():
    settings.configure(
        TIMER=SystemClockTimer(),
        MAX_WORKERS=4,
        VENDORED_NAMESPACES={},
    )
