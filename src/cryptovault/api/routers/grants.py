"""Access grant endpoints."""

from fastapi import APIRouter, Depends, status

from cryptovault.api.deps import (
    get_current_user_id,
    get_grant_service,
    get_shared_entry_cache,
)
from cryptovault.api.schemas import AccessRequestCreate, GrantListResponse, GrantResponse
from cryptovault.domain.models import GrantFilters
from cryptovault.services import AccessGrantService, SharedEntryCache

router = APIRouter(prefix="/grants", tags=["grants"])


@router.get("", response_model=GrantListResponse)
def list_grants(
    user_id: str = Depends(get_current_user_id),
    grants: AccessGrantService = Depends(get_grant_service),
) -> GrantListResponse:
    """Active grants plus pending requests in both directions."""
    return GrantListResponse.model_validate(grants.list_grants(user_id))


@router.post("", response_model=GrantResponse, status_code=status.HTTP_201_CREATED)
def request_access(
    request: AccessRequestCreate,
    user_id: str = Depends(get_current_user_id),
    grants: AccessGrantService = Depends(get_grant_service),
) -> GrantResponse:
    """Ask another user to share their entries with the caller."""
    filters = GrantFilters(
        shared_types=request.shared_types,
        expires_at=request.expires_at,
        date_from=request.date_from,
        date_to=request.date_to,
        min_pnl=request.min_pnl,
        message=request.message,
    )
    grant = grants.request_access(user_id, request.sharer_id, filters)
    return GrantResponse.model_validate(grant)


@router.post("/{grant_id}/approve", response_model=GrantResponse)
def approve_grant(
    grant_id: str,
    user_id: str = Depends(get_current_user_id),
    grants: AccessGrantService = Depends(get_grant_service),
) -> GrantResponse:
    """Sharer approves a pending request."""
    return GrantResponse.model_validate(grants.approve(user_id, grant_id))


@router.post("/{grant_id}/deny", response_model=GrantResponse)
def deny_grant(
    grant_id: str,
    user_id: str = Depends(get_current_user_id),
    grants: AccessGrantService = Depends(get_grant_service),
) -> GrantResponse:
    """Sharer denies a pending request."""
    return GrantResponse.model_validate(grants.deny(user_id, grant_id))


@router.post("/{grant_id}/revoke", response_model=GrantResponse)
def revoke_grant(
    grant_id: str,
    user_id: str = Depends(get_current_user_id),
    grants: AccessGrantService = Depends(get_grant_service),
    shared_cache: SharedEntryCache = Depends(get_shared_entry_cache),
) -> GrantResponse:
    """Sharer revokes granted access."""
    grant = grants.revoke(user_id, grant_id)
    shared_cache.invalidate(grant_id)
    return GrantResponse.model_validate(grant)


@router.post("/{grant_id}/cancel", response_model=GrantResponse)
def cancel_request(
    grant_id: str,
    user_id: str = Depends(get_current_user_id),
    grants: AccessGrantService = Depends(get_grant_service),
) -> GrantResponse:
    """Viewer withdraws their pending request."""
    return GrantResponse.model_validate(grants.cancel_request(user_id, grant_id))
