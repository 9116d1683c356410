from __future__ import annotations

POSITION_TYPES: dict[str, str] = {
    "chef": "Chef de cuisine",
    "sous_chef": "Sous-chef",
    "chef_de_partie": "Chef de partie",
    "commis": "Commis de cuisine",
    "plongeur": "Plongeur",
    "maitre_hotel": "Maître d'hôtel",
    "chef_de_salle": "Chef de salle",
    "serveur": "Serveur",
    "barman": "Barman",
    "sommelier": "Sommelier",
    "runner": "Runner",
    "receptionniste": "Réceptionniste",
    "concierge": "Concierge",
    "gouvernante": "Gouvernante",
    "valet": "Valet / Voiturier",
    "manager": "Manager",
    "assistant_manager": "Assistant manager",
}


def position_label(code: str) -> str:
    return POSITION_TYPES.get(code, code)
