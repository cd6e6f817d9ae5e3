import os
import tempfile

import pytest

# settings are read once at import; point the event log away from the repo root first
_EVENTS_DIR = tempfile.mkdtemp(prefix="availgrid-events-")
os.environ.setdefault("AVGRID_EVENTS_FILE", os.path.join(_EVENTS_DIR, "events.ndjson"))
os.environ.setdefault("AVGRID_VERBOSE_LOG", "false")


@pytest.fixture(autouse=True)
def _test_env(monkeypatch):
    # EditorConfig reads these at construction; keep the defaults unless a test opts in
    for key in ("AVGRID_SEND_FULL_GRID", "AVGRID_LOG_POINTER_MOVES", "AVGRID_GENERATE_TIMEOUT_S"):
        monkeypatch.delenv(key, raising=False)
    yield


@pytest.fixture
def events_file(tmp_path):
    return str(tmp_path / "events.ndjson")
