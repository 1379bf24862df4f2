"""Crown, headline and rivalry schemas."""

from datetime import datetime

from pydantic import BaseModel


class HeadlineCreate(BaseModel):
    """Request body for setting a crown headline.

    Length rules are enforced by the crown service so callers get the
    dedicated HEADLINE_EMPTY / HEADLINE_TOO_LONG codes.
    """

    content: str


class RivalryCreate(BaseModel):
    """Request body for declaring a rivalry."""

    rival1_id: str
    rival2_id: str


class CrownResponse(BaseModel):
    """A crown grant."""

    id: str
    user_id: str
    squad_id: str
    source_event_id: str | None = None
    granted_at: datetime
    expires_at: datetime


class HeadlineResponse(BaseModel):
    """A crown holder's headline."""

    id: str
    user_id: str
    squad_id: str
    crown_id: str
    content: str
    created_at: datetime
    expires_at: datetime


class RivalryResponse(BaseModel):
    """A declared rivalry."""

    id: str
    declarer_id: str
    rival1_id: str
    rival2_id: str
    squad_id: str
    crown_id: str
    created_at: datetime
    expires_at: datetime


class SquadCrownResponse(BaseModel):
    """Active crown state for a squad."""

    crown: CrownResponse | None = None
    headline: HeadlineResponse | None = None
    rivalry: RivalryResponse | None = None
