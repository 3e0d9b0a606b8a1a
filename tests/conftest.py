from __future__ import annotations

import os
import tempfile
from pathlib import Path

os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault(
    "DATABASE_URL",
    f"sqlite:///{Path(tempfile.gettempdir()) / f'jobboard-test-{os.getpid()}.db'}",
)

import pytest  # noqa: E402

from jobboard.db.base import Base  # noqa: E402
from jobboard.db import models  # noqa: E402,F401
from jobboard.db.session import engine  # noqa: E402


@pytest.fixture(autouse=True)
def reset_db() -> None:
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
