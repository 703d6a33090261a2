"""Portfolio analytics endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from cryptovault.api.deps import get_current_user_id, get_metrics_engine
from cryptovault.api.schemas import (
    AssetSummaryListResponse,
    AssetSummaryResponse,
    PnlCalendarResponse,
    PnlHeatmapResponse,
    PortfolioMetricsResponse,
)
from cryptovault.core.timezone import now_utc
from cryptovault.services import PortfolioMetricsEngine

router = APIRouter(prefix="/portfolio", tags=["portfolio"])


@router.get("/metrics", response_model=PortfolioMetricsResponse)
def get_metrics(
    include_shared: bool = Query(True, description="Include visible shared sources"),
    user_id: str = Depends(get_current_user_id),
    engine: PortfolioMetricsEngine = Depends(get_metrics_engine),
) -> PortfolioMetricsResponse:
    """Holdings value, P&L, windowed P&L, win rate and performers."""
    return PortfolioMetricsResponse.model_validate(
        engine.compute(user_id, include_shared=include_shared)
    )


@router.get("/assets", response_model=AssetSummaryListResponse)
def get_assets(
    include_shared: bool = Query(True, description="Include visible shared sources"),
    user_id: str = Depends(get_current_user_id),
    engine: PortfolioMetricsEngine = Depends(get_metrics_engine),
) -> AssetSummaryListResponse:
    """Per-asset holdings valued at cached prices."""
    assets = engine.asset_summaries(user_id, include_shared=include_shared)
    return AssetSummaryListResponse(items=[AssetSummaryResponse.model_validate(a) for a in assets])


@router.get("/calendar", response_model=PnlCalendarResponse)
def get_calendar(
    year: Optional[int] = Query(None, ge=1970, le=9999, description="Defaults to the current UTC year"),
    month: Optional[int] = Query(None, ge=1, le=12, description="Defaults to the current UTC month"),
    include_shared: bool = Query(True, description="Include visible shared sources"),
    user_id: str = Depends(get_current_user_id),
    engine: PortfolioMetricsEngine = Depends(get_metrics_engine),
) -> PnlCalendarResponse:
    """Realized P&L per UTC day for one month."""
    today = now_utc()
    calendar = engine.daily_calendar(
        user_id,
        year or today.year,
        month or today.month,
        include_shared=include_shared,
    )
    return PnlCalendarResponse.model_validate(calendar)


@router.get("/heatmap", response_model=PnlHeatmapResponse)
def get_heatmap(
    include_shared: bool = Query(True, description="Include visible shared sources"),
    user_id: str = Depends(get_current_user_id),
    engine: PortfolioMetricsEngine = Depends(get_metrics_engine),
) -> PnlHeatmapResponse:
    """Entry count and realized P&L by UTC weekday and hour."""
    return PnlHeatmapResponse.model_validate(engine.activity_heatmap(user_id, include_shared=include_shared))
