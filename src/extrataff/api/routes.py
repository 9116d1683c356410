from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query, Response

from extrataff.api.deps import get_marketplace
from extrataff.api.schemas import (
    ApplicationConfirmRequest,
    ApplicationCreateRequest,
    ApplicationResponse,
    EstablishmentCreateRequest,
    EstablishmentResponse,
    MissionCreateRequest,
    MissionCreateResponse,
    MissionRelaunchRequest,
    MissionResponse,
    NotificationResponse,
    PaymentVerifyRequest,
    PricingResponse,
    SubscriptionResponse,
    TalentCreateRequest,
    TalentResponse,
)
from extrataff.core.marketplace import MarketplaceService
from extrataff.types import Application, Establishment, Mission, MissionDraft, PricingDecision, Talent

router = APIRouter(prefix="/api", tags=["api"])


def _establishment(item: Establishment) -> EstablishmentResponse:
    return EstablishmentResponse(
        id=item.id,
        user_id=item.user_id,
        name=item.name,
        address=item.address,
        department=item.department,
        subscription=SubscriptionResponse.model_validate(item.subscription.model_dump()),
    )


def _talent(item: Talent) -> TalentResponse:
    return TalentResponse(
        id=item.id,
        user_id=item.user_id,
        first_name=item.first_name,
        position_types=sorted(item.position_types),
        preferred_departments=sorted(item.preferred_departments),
        min_hourly_rate=item.min_hourly_rate,
    )


def _mission(item: Mission) -> MissionResponse:
    return MissionResponse.model_validate(item.model_dump())


def _pricing(decision: PricingDecision) -> PricingResponse:
    return PricingResponse(
        rule=decision.rule,
        price=decision.price,
        is_urgent=decision.is_urgent,
        requires_payment=decision.requires_payment,
    )


def _application(item: Application) -> ApplicationResponse:
    return ApplicationResponse.model_validate(item.model_dump())


@router.post("/establishments", response_model=EstablishmentResponse)
def create_establishment(
    payload: EstablishmentCreateRequest,
    service: MarketplaceService = Depends(get_marketplace),
) -> EstablishmentResponse:
    establishment = service.register_establishment(
        user_id=payload.user_id,
        name=payload.name,
        address=payload.address,
        establishment_type=payload.establishment_type,
    )
    return _establishment(establishment)


@router.get("/establishments/{establishment_id}", response_model=EstablishmentResponse)
def get_establishment(
    establishment_id: int,
    service: MarketplaceService = Depends(get_marketplace),
) -> EstablishmentResponse:
    return _establishment(service.get_establishment(establishment_id))


@router.get("/establishments/{establishment_id}/pricing", response_model=PricingResponse)
def quote_mission(
    establishment_id: int,
    start_date: date = Query(...),
    service: MarketplaceService = Depends(get_marketplace),
) -> PricingResponse:
    return _pricing(service.quote_mission(establishment_id, start_date))


@router.post("/talents", response_model=TalentResponse)
def create_talent(payload: TalentCreateRequest, service: MarketplaceService = Depends(get_marketplace)) -> TalentResponse:
    talent = service.register_talent(**payload.model_dump())
    return _talent(talent)


@router.get("/talents/{talent_id}", response_model=TalentResponse)
def get_talent(talent_id: int, service: MarketplaceService = Depends(get_marketplace)) -> TalentResponse:
    return _talent(service.get_talent(talent_id))


@router.get("/talents/{talent_id}/matched-missions", response_model=list[MissionResponse])
def matched_missions(talent_id: int, service: MarketplaceService = Depends(get_marketplace)) -> list[MissionResponse]:
    return [_mission(item) for item in service.matched_missions_for_talent(talent_id)]


@router.post("/missions", response_model=MissionCreateResponse)
def create_mission(
    payload: MissionCreateRequest,
    service: MarketplaceService = Depends(get_marketplace),
) -> MissionCreateResponse:
    draft = MissionDraft(
        position=payload.position,
        start_date=payload.start_date,
        end_date=payload.end_date,
        hourly_rate=payload.hourly_rate,
        department=payload.department,
    )
    result = service.create_mission(payload.establishment_id, draft, comment=payload.comment)
    return MissionCreateResponse(
        mission=_mission(result.mission),
        pricing=_pricing(result.decision),
        checkout_url=result.checkout_url,
    )


@router.get("/missions/{mission_id}", response_model=MissionResponse)
def get_mission(mission_id: int, service: MarketplaceService = Depends(get_marketplace)) -> MissionResponse:
    return _mission(service.get_mission(mission_id))


@router.get("/missions/{mission_id}/matched-talents", response_model=list[TalentResponse])
def matched_talents(mission_id: int, service: MarketplaceService = Depends(get_marketplace)) -> list[TalentResponse]:
    return [_talent(item) for item in service.matched_talents_for_mission(mission_id)]


@router.post("/missions/{mission_id}/relaunch", response_model=MissionResponse)
def relaunch_mission(
    mission_id: int,
    payload: MissionRelaunchRequest,
    service: MarketplaceService = Depends(get_marketplace),
) -> MissionResponse:
    return _mission(service.relaunch_mission(mission_id, payload.start_date, payload.end_date))


@router.post("/missions/{mission_id}/close", response_model=MissionResponse)
def close_mission(mission_id: int, service: MarketplaceService = Depends(get_marketplace)) -> MissionResponse:
    return _mission(service.close_mission(mission_id))


@router.post("/missions/{mission_id}/cancel", response_model=MissionResponse)
def cancel_mission(mission_id: int, service: MarketplaceService = Depends(get_marketplace)) -> MissionResponse:
    return _mission(service.cancel_mission(mission_id))


@router.post("/missions/{mission_id}/applications", response_model=ApplicationResponse)
def express_interest(
    mission_id: int,
    payload: ApplicationCreateRequest,
    service: MarketplaceService = Depends(get_marketplace),
) -> ApplicationResponse:
    application = service.express_interest(mission_id, payload.talent_id, match_score=payload.match_score)
    return _application(application)


@router.post("/applications/{application_id}/accept", response_model=ApplicationResponse)
def accept_application(
    application_id: int,
    service: MarketplaceService = Depends(get_marketplace),
) -> ApplicationResponse:
    return _application(service.accept_application(application_id))


@router.post("/applications/{application_id}/reject", response_model=ApplicationResponse)
def reject_application(
    application_id: int,
    service: MarketplaceService = Depends(get_marketplace),
) -> ApplicationResponse:
    return _application(service.reject_application(application_id))


@router.post("/applications/{application_id}/confirm", response_model=ApplicationResponse)
def confirm_application(
    application_id: int,
    payload: ApplicationConfirmRequest,
    service: MarketplaceService = Depends(get_marketplace),
) -> ApplicationResponse:
    return _application(service.confirm_application(application_id, payload.party))


@router.post("/applications/{application_id}/cancel", response_model=ApplicationResponse)
def cancel_application(
    application_id: int,
    service: MarketplaceService = Depends(get_marketplace),
) -> ApplicationResponse:
    return _application(service.cancel_application(application_id))


@router.delete("/applications/{application_id}", status_code=204)
def withdraw_application(application_id: int, service: MarketplaceService = Depends(get_marketplace)) -> Response:
    service.withdraw_application(application_id)
    return Response(status_code=204)


@router.post("/payments/verify", response_model=MissionResponse)
def verify_payment(payload: PaymentVerifyRequest, service: MarketplaceService = Depends(get_marketplace)) -> MissionResponse:
    return _mission(service.confirm_mission_payment(payload.mission_id, payload.session_id))


@router.get("/users/{user_id}/notifications", response_model=list[NotificationResponse])
def list_notifications(
    user_id: str,
    unread_only: bool = False,
    service: MarketplaceService = Depends(get_marketplace),
) -> list[NotificationResponse]:
    rows = service.repo.list_notifications(user_id, unread_only=unread_only)
    return [
        NotificationResponse(
            id=row.id,
            type=row.type,
            title=row.title,
            content=row.content,
            link=row.link,
            read=row.read,
        )
        for row in rows
    ]
