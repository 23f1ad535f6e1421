"""
Public Mosque Router

Endpoints:
- GET /mosques - Search the mosque directory (public)
- GET /mosques/{id} - Public information shown to applicants before they register
- GET /mosques/{id}/prayer-times - Congregation times (public)
- PATCH /mosques/{id} - Update name, location or description (the mosque's approved admin)
- PATCH /mosques/{id}/prayer-times - Update congregation times (the mosque's approved admin)

Security:
- Changes need a full token of an approved admin bound to that mosque
- Changes are rate limited per admin
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from mosque_registry.core.auth import AdminAccountUser, get_approved_admin
from mosque_registry.core.database import get_db
from mosque_registry.core.rate_limit import enforce_rate_limit
from mosque_registry.modules.admins.errors import LifecycleError
from mosque_registry.modules.admins.http import client_ip, error_to_http
from mosque_registry.modules.audit.recorder import Actor
from mosque_registry.modules.mosques import service
from mosque_registry.modules.mosques.schemas import (
    MosqueDetailsUpdate,
    MosquePrayerTimesResponse,
    MosquePublicInfo,
    MosquePublicListResponse,
    PrayerTimes,
)

logger = logging.getLogger(__name__)

router = APIRouter()

RATE_LIMIT_EDITS = (30, 60)  # 30 edits per minute per admin


def _admin_actor(account: AdminAccountUser, request: Request) -> Actor:
    return Actor(
        id=account.id,
        type="admin",
        email=account.email,
        name=account.name,
        ip_address=client_ip(request),
    )


def _prayer_times_response(mosque) -> MosquePrayerTimesResponse:
    return MosquePrayerTimesResponse(
        mosque_id=mosque.id,
        name=mosque.name,
        location=mosque.location,
        prayer_times=mosque.prayer_times,
    )


@router.get("", response_model=MosquePublicListResponse)
async def list_mosques(
    search: str | None = Query(None, max_length=100, description="Search name or location"),
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
) -> MosquePublicListResponse:
    """Page through the mosque directory."""
    mosques, total = await service.list_public_mosques(db, search=search, skip=skip, limit=limit)
    return MosquePublicListResponse(
        items=[MosquePublicInfo.model_validate(mosque) for mosque in mosques],
        total=total,
        skip=skip,
        limit=limit,
    )


@router.get("/{mosque_id}", response_model=MosquePublicInfo)
async def get_public_info(
    mosque_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> MosquePublicInfo:
    """Name, location, contact and instructions. Never the code."""
    try:
        mosque = await service.get_mosque(db, mosque_id)
    except LifecycleError as e:
        raise error_to_http(e) from e
    return MosquePublicInfo.model_validate(mosque)


@router.get("/{mosque_id}/prayer-times", response_model=MosquePrayerTimesResponse)
async def get_prayer_times(
    mosque_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> MosquePrayerTimesResponse:
    try:
        mosque = await service.get_mosque(db, mosque_id)
    except LifecycleError as e:
        raise error_to_http(e) from e
    return _prayer_times_response(mosque)


@router.patch("/{mosque_id}", response_model=MosquePublicInfo)
async def update_details(
    mosque_id: UUID,
    data: MosqueDetailsUpdate,
    request: Request,
    account: AdminAccountUser = Depends(get_approved_admin),
    db: AsyncSession = Depends(get_db),
) -> MosquePublicInfo:
    """
    Update the mosque's name, location or description.

    Raises:
        HTTPException 403: Caller is not the approved admin of this mosque
        HTTPException 404: Mosque not found
        HTTPException 429: Too many edits
    """
    await enforce_rate_limit(f"mosques:edit:{account.id}", *RATE_LIMIT_EDITS)

    try:
        mosque = await service.update_details_as_admin(
            db, mosque_id, data, _admin_actor(account, request)
        )
    except LifecycleError as e:
        raise error_to_http(e) from e
    return MosquePublicInfo.model_validate(mosque)


@router.patch("/{mosque_id}/prayer-times", response_model=MosquePrayerTimesResponse)
async def update_prayer_times(
    mosque_id: UUID,
    data: PrayerTimes,
    request: Request,
    account: AdminAccountUser = Depends(get_approved_admin),
    db: AsyncSession = Depends(get_db),
) -> MosquePrayerTimesResponse:
    """
    Update congregation times ("HH:MM", 24 hour clock).

    Prayers left out keep their current time; null clears one.

    Raises:
        HTTPException 403: Caller is not the approved admin of this mosque
        HTTPException 404: Mosque not found
        HTTPException 422: Malformed time
        HTTPException 429: Too many edits
    """
    await enforce_rate_limit(f"mosques:edit:{account.id}", *RATE_LIMIT_EDITS)

    try:
        mosque = await service.update_prayer_times(
            db, mosque_id, data, _admin_actor(account, request)
        )
    except LifecycleError as e:
        raise error_to_http(e) from e

    logger.debug(f"Prayer times for mosque {mosque.id}: {mosque.prayer_times}")
    return _prayer_times_response(mosque)
