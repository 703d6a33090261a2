"""Journal entry endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status

from cryptovault.api.deps import (
    get_current_user_id,
    get_entry_aggregator,
    get_journal_service,
)
from cryptovault.api.schemas import (
    CombinedEntriesResponse,
    EntryCreateRequest,
    EntryListResponse,
    EntryResponse,
    EntryUpdateRequest,
    SourcedEntryResponse,
)
from cryptovault.services import EntryAggregator, EntryCreate, EntryUpdate, JournalService

router = APIRouter(prefix="/entries", tags=["entries"])


@router.get("", response_model=EntryListResponse)
def list_entries(
    limit: Optional[int] = Query(None, ge=1, le=1000),
    user_id: str = Depends(get_current_user_id),
    journal: JournalService = Depends(get_journal_service),
) -> EntryListResponse:
    """List the caller's own entries, newest first."""
    entries = journal.list_entries(user_id, limit=limit)
    return EntryListResponse(
        items=[EntryResponse.model_validate(e) for e in entries],
        total=len(entries),
    )


@router.post("", response_model=EntryResponse, status_code=status.HTTP_201_CREATED)
def create_entry(
    request: EntryCreateRequest,
    user_id: str = Depends(get_current_user_id),
    journal: JournalService = Depends(get_journal_service),
) -> EntryResponse:
    """Log a new entry owned by the caller."""
    entry = journal.create_entry(user_id, EntryCreate(**request.model_dump()))
    return EntryResponse.model_validate(entry)


@router.get("/combined", response_model=CombinedEntriesResponse)
def get_combined_entries(
    user_id: str = Depends(get_current_user_id),
    aggregator: EntryAggregator = Depends(get_entry_aggregator),
) -> CombinedEntriesResponse:
    """Own entries merged with visible shared sources, newest first."""
    combined = aggregator.get_combined_entries(user_id)
    return CombinedEntriesResponse(
        items=[SourcedEntryResponse.model_validate(s) for s in combined],
        total=len(combined),
        shared_count=sum(1 for s in combined if s.is_shared),
    )


@router.get("/{entry_id}", response_model=EntryResponse)
def get_entry(
    entry_id: str,
    user_id: str = Depends(get_current_user_id),
    journal: JournalService = Depends(get_journal_service),
) -> EntryResponse:
    """Get one of the caller's entries."""
    return EntryResponse.model_validate(journal.get_entry(user_id, entry_id))


@router.patch("/{entry_id}", response_model=EntryResponse)
def update_entry(
    entry_id: str,
    request: EntryUpdateRequest,
    user_id: str = Depends(get_current_user_id),
    journal: JournalService = Depends(get_journal_service),
) -> EntryResponse:
    """Edit one of the caller's entries (partial update)."""
    patch = EntryUpdate(**request.model_dump(exclude_unset=True))
    return EntryResponse.model_validate(journal.update_entry(user_id, entry_id, patch))


@router.delete("/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_entry(
    entry_id: str,
    user_id: str = Depends(get_current_user_id),
    journal: JournalService = Depends(get_journal_service),
) -> Response:
    """Delete one of the caller's entries."""
    journal.delete_entry(user_id, entry_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
