"""French address helpers: department codes and privacy-preserving labels."""

from __future__ import annotations

import re

_POSTAL_CODE = re.compile(r"\b(\d{5})\b")
_CITY_AFTER_POSTAL = re.compile(r"(\d{5})\s+([A-Za-zÀ-ÿ\s-]+)")
_DEPARTMENT_SUFFIX = re.compile(r"\((\d{2}|2[AB])\)")


def department_from_postal_code(postal_code: str) -> str:
    department = postal_code[:2]
    if department == "20":
        # Corsica splits at 20200.
        return "2A" if int(postal_code) < 20200 else "2B"
    return department


def extract_department(address: str | None) -> str | None:
    if not address:
        return None

    if "paris" in address.lower():
        return "75"

    postal = _POSTAL_CODE.search(address)
    if postal:
        return department_from_postal_code(postal.group(1))

    suffix = _DEPARTMENT_SUFFIX.search(address)
    if suffix:
        return suffix.group(1)
    return None


def fuzzy_location(address: str | None) -> str:
    """Return a city-level label that hides the street address.

    ``"123 Rue de Rivoli, 75001 Paris"`` becomes ``"Paris 1er"`` and
    ``"12 Rue de la Paix, 69001 Lyon"`` becomes ``"Lyon (69)"``.
    """
    if not address or not address.strip():
        return "France"

    postal = _POSTAL_CODE.search(address)
    last_part = address.split(",")[-1].strip()
    if not postal:
        return last_part or "France"

    postal_code = postal.group(1)
    department = department_from_postal_code(postal_code)
    if department == "75":
        arrondissement = int(postal_code[3:5])
        suffix = "er" if arrondissement == 1 else "ème"
        return f"Paris {arrondissement}{suffix}"

    city = _CITY_AFTER_POSTAL.search(address)
    if city and city.group(2).strip():
        return f"{city.group(2).strip()} ({department})"
    if last_part:
        return f"{last_part} ({department})"
    return f"France ({department})"
