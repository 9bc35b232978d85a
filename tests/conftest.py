import pytest

from credstore.backing import reset_shared_backing


class RecordingLogger:
    def __init__(self):
        self.warnings = []
        self.debugs = []

    def warning(self, event, **kw):
        self.warnings.append((event, kw))

    def debug(self, event, **kw):
        self.debugs.append((event, kw))


@pytest.fixture
def recording_logger():
    return RecordingLogger()


@pytest.fixture(autouse=True)
def clean_shared_backing():
    reset_shared_backing()
    yield
    reset_shared_backing()
