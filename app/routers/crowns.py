"""Crown, headline and rivalry endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from app.dependencies import get_current_user_id, get_db_client
from app.schemas.crown import HeadlineCreate, RivalryCreate, SquadCrownResponse
from app.services.common import SupabaseService
from app.services.crown_service import CrownService
from supabase import Client

router = APIRouter()


@router.get("/squads/{squad_id}/crown", response_model=SquadCrownResponse)
def get_squad_crown(
    squad_id: str,
    user_id: str = Depends(get_current_user_id),
    client: Client = Depends(get_db_client),
) -> dict:
    """Return the squad's active crown, headline and rivalry."""
    SupabaseService(client).ensure_squad_member(user_id, squad_id)

    service = CrownService(client)
    return {
        "crown": service.active_crown(squad_id),
        "headline": service.active_headline(squad_id),
        "rivalry": service.active_rivalry(squad_id),
    }


@router.get("/squads/{squad_id}/crown/holders/{holder_id}")
def get_is_crown_holder(
    squad_id: str,
    holder_id: str,
    user_id: str = Depends(get_current_user_id),
    client: Client = Depends(get_db_client),
) -> dict:
    """Return whether ``holder_id`` holds the squad's active crown."""
    SupabaseService(client).ensure_squad_member(user_id, squad_id)
    return {"is_crown_holder": CrownService(client).is_crown_holder(holder_id, squad_id)}


@router.get("/squads/{squad_id}/rivals")
def get_are_rivals(
    squad_id: str,
    user_a: str = Query(...),
    user_b: str = Query(...),
    user_id: str = Depends(get_current_user_id),
    client: Client = Depends(get_db_client),
) -> dict:
    """Return whether two members are currently declared rivals."""
    SupabaseService(client).ensure_squad_member(user_id, squad_id)
    return {"are_rivals": CrownService(client).are_rivals(user_a, user_b, squad_id)}


@router.post("/crowns/{crown_id}/headline")
def set_headline(
    crown_id: str,
    payload: HeadlineCreate,
    user_id: str = Depends(get_current_user_id),
    client: Client = Depends(get_db_client),
) -> dict:
    """Set or replace the headline for the caller's crown."""
    headline = CrownService(client).create_headline(
        actor_id=user_id,
        crown_id=crown_id,
        content=payload.content,
    )
    return {"headline": headline}


@router.post("/crowns/{crown_id}/rivalry")
def declare_rivalry(
    crown_id: str,
    payload: RivalryCreate,
    user_id: str = Depends(get_current_user_id),
    client: Client = Depends(get_db_client),
) -> dict:
    """Declare or replace the rivalry for the caller's crown."""
    rivalry = CrownService(client).declare_rivalry(
        actor_id=user_id,
        crown_id=crown_id,
        rival1_id=payload.rival1_id,
        rival2_id=payload.rival2_id,
    )
    return {"rivalry": rivalry}
