from __future__ import annotations

from extrataff.config import get_settings
from extrataff.db import models  # noqa: F401
from extrataff.db.base import Base
from extrataff.db.session import engine


def ensure_data_directories() -> None:
    settings = get_settings()
    settings.data_dir.mkdir(parents=True, exist_ok=True)


def init_database() -> dict[str, list[str]]:
    ensure_data_directories()
    Base.metadata.create_all(bind=engine)
    return {"tables": sorted(Base.metadata.tables)}
