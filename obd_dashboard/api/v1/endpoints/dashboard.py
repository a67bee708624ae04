"""Dashboard summary and paginated data browser, served through the query cache."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from obd_dashboard.api.deps import get_current_user, get_db
from obd_dashboard.api.v1.schemas import DataPageType
from obd_dashboard.cache import query_cache
from obd_dashboard.services.analytics import AnalyticsService

router = APIRouter(dependencies=[Depends(get_current_user)])

# Daily aggregates change slowly.
_HISTORICAL_TTL_FACTOR = 10


@router.get("/dashboard/stats")
def dashboard_stats(db: Session = Depends(get_db)) -> dict:
    return query_cache.get_or_load(
        "dashboard:stats", lambda: AnalyticsService(db).dashboard_stats(),
    )


@router.get("/data")
def data_page(
    data_type: DataPageType = Query("live", alias="type"),
    limit: int = Query(10, ge=1, le=500),
    page: int = Query(1, ge=1),
    db: Session = Depends(get_db),
) -> dict:
    ttl = None
    if data_type == "historical":
        ttl = query_cache.ttl_seconds * _HISTORICAL_TTL_FACTOR
    return query_cache.get_or_load(
        f"data:{data_type}:{limit}:{page}",
        lambda: AnalyticsService(db).data_page(data_type, limit, page),
        ttl=ttl,
    )
