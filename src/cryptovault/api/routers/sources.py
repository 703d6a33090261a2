"""Data source visibility endpoints."""

from fastapi import APIRouter, Depends

from cryptovault.api.deps import get_current_user_id, get_visibility_service
from cryptovault.api.schemas import DataSourceResponse, VisibilityUpdate
from cryptovault.core.exceptions import NotFoundError
from cryptovault.services import DataVisibilityService

router = APIRouter(prefix="/sources", tags=["sources"])


@router.get("", response_model=list[DataSourceResponse])
def list_sources(
    user_id: str = Depends(get_current_user_id),
    visibility: DataVisibilityService = Depends(get_visibility_service),
) -> list[DataSourceResponse]:
    """Own source plus one per active grant where the caller is viewer."""
    return [DataSourceResponse.model_validate(s) for s in visibility.list_sources(user_id)]


@router.put("/{source_id}", response_model=DataSourceResponse)
def set_source_visibility(
    source_id: str,
    request: VisibilityUpdate,
    user_id: str = Depends(get_current_user_id),
    visibility: DataVisibilityService = Depends(get_visibility_service),
) -> DataSourceResponse:
    """Show or hide a source in combined views."""
    sources = {s.source_id: s for s in visibility.list_sources(user_id)}
    source = sources.get(source_id)
    if source is None:
        raise NotFoundError("Data source", source_id)
    source.is_visible = visibility.set_visible(user_id, source_id, request.is_visible)
    return DataSourceResponse.model_validate(source)
