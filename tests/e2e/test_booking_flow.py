import json

from fastapi.testclient import TestClient
from typer.testing import CliRunner

from extrataff.api.app import create_app
from extrataff.cli.app import app as cli_app
from extrataff.db.repositories import Repository
from extrataff.db.session import SessionLocal
from extrataff.logging_config import configure_logging


def _cli(runner: CliRunner, *args: str) -> dict | list:
    result = runner.invoke(cli_app, list(args))
    assert result.exit_code == 0, result.output
    return json.loads(result.stdout)


def test_mission_from_cli_to_confirmed_booking() -> None:
    configure_logging()
    runner = CliRunner()

    establishment = _cli(
        runner,
        "establishment",
        "create",
        "--user-id",
        "est-1",
        "--name",
        "Brasserie du Vieux Port",
        "--address",
        "4 Quai du Port, 13002 Marseille",
    )
    assert establishment["department"] == "13"

    talent = _cli(
        runner,
        "talent",
        "create",
        "--user-id",
        "tal-1",
        "--first-name",
        "Inès",
        "--position",
        "serveur",
        "--department",
        "13",
    )
    assert talent["position_types"] == ["serveur"]

    quote = _cli(runner, "mission", "quote", "--establishment-id", str(establishment["id"]), "--start-date", "2099-06-01")
    assert quote["rule"] == "freemium_quota"
    assert quote["requires_payment"] is False

    created = _cli(
        runner,
        "mission",
        "create",
        "--establishment-id",
        str(establishment["id"]),
        "--position",
        "serveur",
        "--start-date",
        "2099-06-01",
        "--end-date",
        "2099-06-03",
    )
    mission_id = created["mission"]["id"]
    assert created["mission"]["location_fuzzy"] == "Marseille (13)"
    assert created["checkout_url"] is None

    matches = _cli(runner, "match", "missions", "--talent-id", str(talent["id"]))
    assert [item["id"] for item in matches] == [mission_id]

    client = TestClient(create_app())
    application = client.post(f"/api/missions/{mission_id}/applications", json={"talent_id": talent["id"], "match_score": 78})
    assert application.status_code == 200
    application_id = application.json()["id"]

    assert client.post(f"/api/applications/{application_id}/accept").status_code == 200
    client.post(f"/api/applications/{application_id}/confirm", json={"party": "talent"})
    booked = client.post(f"/api/applications/{application_id}/confirm", json={"party": "establishment"})
    assert booked.json()["status"] == "confirmed"

    assert _cli(runner, "match", "missions", "--talent-id", str(talent["id"])) == []

    with SessionLocal() as db:
        repo = Repository(db)
        establishment_inbox = [row.type for row in repo.list_notifications("est-1")]
        assert "new_application" in establishment_inbox
        assert "application_confirmed" in establishment_inbox
        assert repo.get_establishment(establishment["id"]).missions_used == 1


def test_cli_reports_business_errors() -> None:
    configure_logging()
    runner = CliRunner()
    result = runner.invoke(cli_app, ["mission", "quote", "--establishment-id", "42", "--start-date", "2099-06-01"])

    assert result.exit_code == 1
