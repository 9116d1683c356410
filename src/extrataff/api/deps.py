from __future__ import annotations

from collections.abc import Generator

from fastapi import Depends
from sqlalchemy.orm import Session

from extrataff.core.marketplace import MarketplaceService
from extrataff.db.session import get_db_session


def get_db() -> Generator[Session, None, None]:
    yield from get_db_session()


def get_marketplace(db: Session = Depends(get_db)) -> MarketplaceService:
    return MarketplaceService(db)
