# src/forum_content/api/v1/endpoints/history.py
"""View-history endpoints: record a view, list and search one's own history."""

from datetime import date
from typing import Annotated

from fastapi import APIRouter, Query, Response, status

from forum_content.api.v1.dependencies import AuthenticatedActorDep, HistoryServiceDep
from forum_content.schemas.common import Pagination
from forum_content.schemas.history import (
    HistoryEntryResponse,
    HistoryListResponse,
    HistorySearchResponse,
    ViewRecordRequest,
    ViewRecordResponse,
)

router = APIRouter(prefix="/history", tags=["history"])


@router.post(
    "/",
    response_model=ViewRecordResponse,
    status_code=status.HTTP_201_CREATED,
)
async def record_view(
    payload: ViewRecordRequest,
    response: Response,
    actor: AuthenticatedActorDep,
    service: HistoryServiceDep,
) -> ViewRecordResponse:
    """Record that the caller viewed a post.

    A repeat view within the de-duplication window answers 200 and refreshes
    the existing entry instead of creating one.
    """
    recorded = service.record_view(payload.post_id, actor)
    if not recorded.created:
        response.status_code = status.HTTP_200_OK
    return ViewRecordResponse(
        message="View recorded" if recorded.created else "View updated",
        history=HistoryEntryResponse.model_validate(recorded.entry),
    )


@router.get("/{user_id}", response_model=HistoryListResponse)
async def list_history(
    user_id: str,
    actor: AuthenticatedActorDep,
    service: HistoryServiceDep,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int | None, Query(ge=1, le=100)] = None,
) -> HistoryListResponse:
    """List the caller's views of published posts, most recent first."""
    result = service.list_history(user_id, actor, page=page, limit=limit)
    return HistoryListResponse(
        items=[HistoryEntryResponse.from_entry(item) for item in result.items],
        pagination=Pagination.from_page(result),
    )


@router.get("/{user_id}/search", response_model=HistorySearchResponse)
async def search_history(
    user_id: str,
    actor: AuthenticatedActorDep,
    service: HistoryServiceDep,
    keyword: Annotated[str | None, Query(max_length=200)] = None,
    viewed_on: Annotated[date | None, Query(alias="date")] = None,
) -> HistorySearchResponse:
    """Filter the caller's history by keyword and by view date (YYYY-MM-DD, UTC)."""
    items = service.search_history(user_id, actor, keyword=keyword, viewed_on=viewed_on)
    return HistorySearchResponse(items=[HistoryEntryResponse.from_entry(i) for i in items])
