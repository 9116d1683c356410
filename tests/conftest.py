from __future__ import annotations

import os
import tempfile

os.environ.setdefault("DATABASE_URL", f"sqlite:///{tempfile.gettempdir()}/extrataff_test.db")
os.environ.setdefault("DATA_DIR", tempfile.gettempdir())
os.environ.setdefault("APP_ENV", "test")

import pytest  # noqa: E402

from extrataff.db import models  # noqa: E402,F401
from extrataff.db.base import Base  # noqa: E402
from extrataff.db.session import engine  # noqa: E402


@pytest.fixture(autouse=True)
def reset_db() -> None:
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
