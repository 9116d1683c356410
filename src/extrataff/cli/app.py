from __future__ import annotations

import json
from datetime import date, datetime
from decimal import Decimal
from typing import Any

import typer
import uvicorn

from extrataff.api.app import create_app
from extrataff.config import get_settings
from extrataff.core.errors import MarketplaceError
from extrataff.core.marketplace import MarketplaceService
from extrataff.db.init import init_database
from extrataff.db.session import SessionLocal
from extrataff.logging_config import configure_logging
from extrataff.types import MissionDraft

app = typer.Typer(help="ExtraTaff marketplace CLI")
establishment_app = typer.Typer(help="Manage establishments")
talent_app = typer.Typer(help="Manage talents")
mission_app = typer.Typer(help="Create and price missions")
match_app = typer.Typer(help="Matching between talents and missions")

app.add_typer(establishment_app, name="establishment")
app.add_typer(talent_app, name="talent")
app.add_typer(mission_app, name="mission")
app.add_typer(match_app, name="match")

_INITIALIZED = False


def ensure_initialized() -> None:
    global _INITIALIZED
    if _INITIALIZED:
        return
    init_database()
    _INITIALIZED = True


def _json_default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, (set, frozenset)):
        return sorted(value)
    raise TypeError(f"cannot serialize {type(value).__name__}")


def _echo(payload: Any) -> None:
    typer.echo(json.dumps(payload, indent=2, default=_json_default))


def _fail(exc: MarketplaceError) -> None:
    typer.echo(json.dumps({"ok": False, "error": exc.__class__.__name__, "detail": str(exc)}, indent=2), err=True)
    raise typer.Exit(code=1)


@app.command("init")
def init_cmd() -> None:
    """Initialize database and data directories."""
    configure_logging()
    result = init_database()
    _echo({"ok": True, **result})


@app.command("serve")
def serve_cmd(
    host: str = typer.Option(None, "--host"),
    port: int = typer.Option(None, "--port"),
) -> None:
    """Run the HTTP API."""
    configure_logging()
    settings = get_settings()
    uvicorn.run(create_app(), host=host or settings.app_host, port=port or settings.app_port)


@establishment_app.command("create")
def establishment_create(
    user_id: str = typer.Option(..., "--user-id"),
    name: str = typer.Option(..., "--name"),
    address: str = typer.Option("", "--address"),
) -> None:
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        establishment = MarketplaceService(db).register_establishment(
            user_id=user_id,
            name=name,
            address=address or None,
        )
        _echo(establishment.model_dump())


@talent_app.command("create")
def talent_create(
    user_id: str = typer.Option(..., "--user-id"),
    first_name: str = typer.Option("", "--first-name"),
    position: list[str] = typer.Option([], "--position", help="Desired position code, repeatable"),
    department: list[str] = typer.Option([], "--department", help="Preferred department code, repeatable"),
) -> None:
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        talent = MarketplaceService(db).register_talent(
            user_id=user_id,
            first_name=first_name,
            position_types=position,
            preferred_departments=department,
        )
        _echo(talent.model_dump())


@mission_app.command("quote")
def mission_quote(
    establishment_id: int = typer.Option(..., "--establishment-id"),
    start_date: datetime = typer.Option(..., "--start-date", formats=["%Y-%m-%d"]),
) -> None:
    """Show what creating a mission starting on START_DATE would cost."""
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        try:
            decision = MarketplaceService(db).quote_mission(establishment_id, start_date.date())
        except MarketplaceError as exc:
            _fail(exc)
            return
        _echo({**decision.model_dump(), "requires_payment": decision.requires_payment})


@mission_app.command("create")
def mission_create(
    establishment_id: int = typer.Option(..., "--establishment-id"),
    position: str = typer.Option(..., "--position"),
    start_date: datetime = typer.Option(..., "--start-date", formats=["%Y-%m-%d"]),
    end_date: datetime = typer.Option(None, "--end-date", formats=["%Y-%m-%d"]),
) -> None:
    configure_logging()
    ensure_initialized()
    draft = MissionDraft(
        position=position,
        start_date=start_date.date(),
        end_date=end_date.date() if end_date else None,
    )
    with SessionLocal() as db:
        try:
            result = MarketplaceService(db).create_mission(establishment_id, draft)
        except MarketplaceError as exc:
            _fail(exc)
            return
        _echo(
            {
                "mission": result.mission.model_dump(),
                "pricing": result.decision.model_dump(),
                "checkout_url": result.checkout_url,
            }
        )


@match_app.command("missions")
def match_missions(talent_id: int = typer.Option(..., "--talent-id")) -> None:
    """List open missions a talent is eligible for."""
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        try:
            missions = MarketplaceService(db).matched_missions_for_talent(talent_id)
        except MarketplaceError as exc:
            _fail(exc)
            return
        _echo([mission.model_dump() for mission in missions])


@match_app.command("talents")
def match_talents(mission_id: int = typer.Option(..., "--mission-id")) -> None:
    """List talents whose preferences fit a mission."""
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        try:
            talents = MarketplaceService(db).matched_talents_for_mission(mission_id)
        except MarketplaceError as exc:
            _fail(exc)
            return
        _echo([talent.model_dump() for talent in talents])


def main() -> None:
    app()


if __name__ == "__main__":
    main()
