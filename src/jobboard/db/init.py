from __future__ import annotations

from pathlib import Path

from jobboard.config import get_settings
from jobboard.db.base import Base
from jobboard.db.session import engine
from jobboard.db import models  # noqa: F401


def ensure_data_directories() -> None:
    settings = get_settings()
    paths: list[Path] = [settings.data_dir]
    if settings.database_url.startswith("sqlite:///"):
        db_path = settings.database_url.removeprefix("sqlite:///")
        if db_path and db_path != ":memory:":
            paths.append(Path(db_path).parent)
    for path in paths:
        path.mkdir(parents=True, exist_ok=True)


def init_database() -> dict[str, list[str]]:
    ensure_data_directories()
    Base.metadata.create_all(bind=engine)
    return {"tables": sorted(Base.metadata.tables)}
