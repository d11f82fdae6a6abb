import pytest

from texcopy.logging import configure_logging
from texcopy.reporting import SilentReporter, set_reporter, set_verbosity


@pytest.fixture(autouse=True)
def _quiet_reporter():
    # The CLI installs a global reporter; every test starts from a quiet one.
    set_reporter(SilentReporter())
    set_verbosity(0)
    yield
    set_reporter(SilentReporter())
    set_verbosity(0)
    configure_logging(0)
