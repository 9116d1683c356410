"""Business-rule failures surfaced to callers.

Every error here is deterministic: the API and CLI catch ``MarketplaceError``
and render the message instead of treating it as a crash.
"""

from __future__ import annotations


class MarketplaceError(Exception):
    """Base class for marketplace rule violations."""


class NotFound(MarketplaceError):
    def __init__(self, kind: str, identifier: int | str):
        super().__init__(f"{kind} {identifier} not found")
        self.kind = kind
        self.identifier = identifier


class InvalidStateTransition(MarketplaceError):
    def __init__(self, entity: str, entity_id: int | None, current: str, action: str):
        target = f"{entity} {entity_id}" if entity_id is not None else entity
        super().__init__(f"cannot {action} {target} in status '{current}'")
        self.entity = entity
        self.entity_id = entity_id
        self.current = current
        self.action = action


class DuplicateApplication(MarketplaceError):
    def __init__(self, mission_id: int, talent_id: int):
        super().__init__(f"talent {talent_id} already applied to mission {mission_id}")
        self.mission_id = mission_id
        self.talent_id = talent_id


class IneligibleMission(MarketplaceError):
    def __init__(self, mission_id: int, status: str):
        super().__init__(f"mission {mission_id} is not open for applications (status '{status}')")
        self.mission_id = mission_id
        self.status = status


class PaymentSessionFailure(MarketplaceError):
    def __init__(self, message: str, mission_id: int | None = None):
        super().__init__(message)
        self.mission_id = mission_id


class MissingEstablishmentProfile(MarketplaceError):
    def __init__(self, establishment_id: int | None = None):
        super().__init__("establishment profile not found")
        self.establishment_id = establishment_id


class MissingAddress(MarketplaceError):
    def __init__(self, establishment_id: int):
        super().__init__("establishment address is missing, complete the profile first")
        self.establishment_id = establishment_id
