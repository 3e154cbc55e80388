import textwrap
from pathlib import Path

import pytest


@pytest.fixture(autouse=True)
def batchjobs_home(monkeypatch, tmp_path):
    """Keep tests away from the user's ~/.config/batchjobs."""
    home = tmp_path / "batchjobs_home"
    monkeypatch.setenv("BATCHJOBS_HOME", str(home))
    return home


@pytest.fixture
def write_file(tmp_path):
    """Write a dedented text file below tmp_path and return its path."""
    def _write(relative: str, text: str) -> Path:
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(text))
        return path
    return _write

