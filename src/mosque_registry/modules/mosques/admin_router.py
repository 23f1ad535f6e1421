"""
Mosque Admin Router

Super admin endpoints for mosque management.

Endpoints:
- POST /admin/mosques - Create a mosque and issue its first code
- GET /admin/mosques - List mosques
- GET /admin/mosques/expiring - Mosques whose code expires soon
- POST /admin/mosques/regenerate-expired - Rotate every expired code now
- GET /admin/mosques/{id} - Get mosque details
- PATCH /admin/mosques/{id} - Update descriptive fields
- DELETE /admin/mosques/{id} - Delete a mosque (admins -> mosque_deleted)
- POST /admin/mosques/{id}/regenerate-code - Rotate the code (admins must revalidate)
- GET /admin/mosques/{id}/verification - Current code, expiry and bound admins
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from mosque_registry.core.auth import SuperAdminUser, get_current_super_admin
from mosque_registry.core.database import get_db
from mosque_registry.core.rate_limit import enforce_rate_limit
from mosque_registry.modules.admins import service as lifecycle_service
from mosque_registry.modules.admins.admin_router import to_actor
from mosque_registry.modules.admins.errors import LifecycleError
from mosque_registry.modules.admins.http import error_to_http, raise_for_result
from mosque_registry.modules.admins.models import Admin
from mosque_registry.modules.mosques import service
from mosque_registry.modules.mosques.schemas import (
    BoundAdminSummary,
    BulkRegenerationResponse,
    DeleteMosqueResponse,
    ExpiringCodeItem,
    ExpiringCodesResponse,
    MosqueCreate,
    MosqueCreatedResponse,
    MosqueListItem,
    MosqueListResponse,
    MosqueResponse,
    MosqueUpdate,
    MosqueVerificationResponse,
    RegenerateCodeRequest,
    RegenerateCodeResponse,
    RegeneratedCodeItem,
)
from mosque_registry.modules.shared import utcnow

logger = logging.getLogger(__name__)

router = APIRouter()

RATE_LIMIT_ACTIONS = (30, 60)  # 30 mosque actions per minute per super admin


async def _check_action_rate_limit(super_admin: SuperAdminUser, action: str) -> None:
    await enforce_rate_limit(f"super_admin:mosque_{action}:{super_admin.id}", *RATE_LIMIT_ACTIONS)


def _admin_summary(admin: Admin) -> BoundAdminSummary:
    return BoundAdminSummary(
        id=admin.id,
        name=admin.name,
        email=admin.email,
        phone=admin.phone,
        status=admin.status.value,
    )


@router.post("", response_model=MosqueCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_mosque(
    data: MosqueCreate,
    request: Request,
    super_admin: SuperAdminUser = Depends(get_current_super_admin),
    db: AsyncSession = Depends(get_db),
) -> MosqueCreatedResponse:
    """
    Create a mosque.

    The response contains the verification code; it is also emailed to the
    mosque's contact address.
    """
    await _check_action_rate_limit(super_admin, "create")

    actor = to_actor(super_admin, request)
    mosque, issued, instructions = await service.create_mosque(db, data, actor)
    return MosqueCreatedResponse(
        mosque=MosqueResponse.model_validate(mosque),
        verification_code=issued.code,
        verification_code_expires=issued.expires_at,
        instructions=instructions,
    )


@router.get("", response_model=MosqueListResponse)
async def list_mosques(
    search: str | None = Query(None, max_length=100),
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    _super_admin: SuperAdminUser = Depends(get_current_super_admin),
    db: AsyncSession = Depends(get_db),
) -> MosqueListResponse:
    mosques, total, holders = await service.list_mosques(
        db, search=search, skip=skip, limit=limit
    )
    return MosqueListResponse(
        items=[
            MosqueListItem(
                **MosqueResponse.model_validate(mosque).model_dump(),
                active_admin=_admin_summary(holders[mosque.id]) if mosque.id in holders else None,
            )
            for mosque in mosques
        ],
        total=total,
        skip=skip,
        limit=limit,
    )


@router.get("/expiring", response_model=ExpiringCodesResponse)
async def list_expiring_codes(
    days: int = Query(7, ge=1, le=90),
    _super_admin: SuperAdminUser = Depends(get_current_super_admin),
    db: AsyncSession = Depends(get_db),
) -> ExpiringCodesResponse:
    """Mosques whose code expires within ``days`` days."""
    now = utcnow()
    mosques = await service.list_expiring_codes(db, days)
    return ExpiringCodesResponse(
        days=days,
        items=[
            ExpiringCodeItem(
                mosque_id=mosque.id,
                name=mosque.name,
                contact_email=mosque.contact_email,
                verification_code_expires=mosque.verification_code_expires,
                days_until_expiry=mosque.days_until_expiry(now),
            )
            for mosque in mosques
        ],
    )


@router.post("/regenerate-expired", response_model=BulkRegenerationResponse)
async def regenerate_expired_codes(
    request: Request,
    super_admin: SuperAdminUser = Depends(get_current_super_admin),
    db: AsyncSession = Depends(get_db),
) -> BulkRegenerationResponse:
    """Rotate every expired code now instead of waiting for the hourly job."""
    await _check_action_rate_limit(super_admin, "regenerate_expired")

    result = await service.regenerate_expired_codes(db, to_actor(super_admin, request))
    return BulkRegenerationResponse(
        executed_at=result.executed_at,
        regenerated=[
            RegeneratedCodeItem(
                mosque_id=mosque.id,
                name=mosque.name,
                verification_code_expires=issued.expires_at,
            )
            for mosque, issued in result.regenerated
        ],
        total=len(result.regenerated),
    )


@router.get("/{mosque_id}", response_model=MosqueResponse)
async def get_mosque(
    mosque_id: UUID,
    _super_admin: SuperAdminUser = Depends(get_current_super_admin),
    db: AsyncSession = Depends(get_db),
) -> MosqueResponse:
    try:
        mosque = await service.get_mosque(db, mosque_id)
    except LifecycleError as e:
        raise error_to_http(e) from e
    return MosqueResponse.model_validate(mosque)


@router.patch("/{mosque_id}", response_model=MosqueResponse)
async def update_mosque(
    mosque_id: UUID,
    data: MosqueUpdate,
    request: Request,
    super_admin: SuperAdminUser = Depends(get_current_super_admin),
    db: AsyncSession = Depends(get_db),
) -> MosqueResponse:
    await _check_action_rate_limit(super_admin, "update")

    try:
        mosque = await service.update_mosque(db, mosque_id, data, to_actor(super_admin, request))
    except LifecycleError as e:
        raise error_to_http(e) from e
    return MosqueResponse.model_validate(mosque)


@router.delete("/{mosque_id}", response_model=DeleteMosqueResponse)
async def delete_mosque(
    mosque_id: UUID,
    request: Request,
    reason: str | None = Query(None, max_length=500),
    super_admin: SuperAdminUser = Depends(get_current_super_admin),
    db: AsyncSession = Depends(get_db),
) -> DeleteMosqueResponse:
    """
    Delete a mosque.

    Every pending, approved or code_regenerated admin of the mosque moves
    to mosque_deleted and may reapply elsewhere.
    """
    await _check_action_rate_limit(super_admin, "delete")

    result = raise_for_result(
        await lifecycle_service.delete_mosque(
            db, mosque_id, to_actor(super_admin, request), reason=reason
        )
    )
    affected = [admin.id for admin in result.affected_admins]
    return DeleteMosqueResponse(
        mosque_id=mosque_id,
        affected_admins=affected,
        message=f"Mosque deleted. {len(affected)} admin(s) notified.",
    )


@router.post("/{mosque_id}/regenerate-code", response_model=RegenerateCodeResponse)
async def regenerate_code(
    mosque_id: UUID,
    request: Request,
    data: RegenerateCodeRequest | None = None,
    super_admin: SuperAdminUser = Depends(get_current_super_admin),
    db: AsyncSession = Depends(get_db),
) -> RegenerateCodeResponse:
    """
    Issue a new code. Approved admins of the mosque must enter it to keep access.
    """
    await _check_action_rate_limit(super_admin, "regenerate_code")

    data = data or RegenerateCodeRequest()
    result = raise_for_result(
        await lifecycle_service.regenerate_mosque_code(
            db,
            mosque_id,
            to_actor(super_admin, request),
            reason=data.reason,
            expiry_days=data.expiry_days,
        )
    )
    affected = [admin.id for admin in result.affected_admins]
    return RegenerateCodeResponse(
        mosque_id=mosque_id,
        verification_code=result.issued_code.code,
        verification_code_expires=result.issued_code.expires_at,
        affected_admins=affected,
        message=f"Verification code regenerated. {len(affected)} admin(s) must revalidate.",
    )


@router.get("/{mosque_id}/verification", response_model=MosqueVerificationResponse)
async def get_verification_details(
    mosque_id: UUID,
    _super_admin: SuperAdminUser = Depends(get_current_super_admin),
    db: AsyncSession = Depends(get_db),
) -> MosqueVerificationResponse:
    try:
        details = await service.get_verification_details(db, mosque_id)
    except LifecycleError as e:
        raise error_to_http(e) from e

    mosque = details.mosque
    return MosqueVerificationResponse(
        mosque_id=mosque.id,
        name=mosque.name,
        verification_code=mosque.verification_code,
        verification_code_expires=mosque.verification_code_expires,
        days_until_expiry=mosque.days_until_expiry(details.now),
        is_expired=mosque.code_is_expired(details.now),
        admins=[_admin_summary(admin) for admin in details.admins],
    )
