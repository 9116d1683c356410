from extrataff.core.geo import department_from_postal_code, extract_department, fuzzy_location


def test_department_from_postal_code_handles_corsica() -> None:
    assert department_from_postal_code("69001") == "69"
    assert department_from_postal_code("20000") == "2A"
    assert department_from_postal_code("20200") == "2B"


def test_extract_department() -> None:
    assert extract_department("123 Rue de Rivoli, 75001 Paris") == "75"
    assert extract_department("12 Rue de la Paix, 69001 Lyon") == "69"
    assert extract_department("Brasserie du Port (13)") == "13"
    assert extract_department("Somewhere without code") is None
    assert extract_department(None) is None


def test_fuzzy_location_hides_street() -> None:
    assert fuzzy_location("123 Rue de Rivoli, 75001 Paris") == "Paris 1er"
    assert fuzzy_location("8 Avenue Montaigne, 75008 Paris") == "Paris 8ème"
    assert fuzzy_location("12 Rue de la Paix, 69001 Lyon") == "Lyon (69)"
    assert fuzzy_location("Quai des Brumes, Marseille") == "Marseille"
    assert fuzzy_location("") == "France"
