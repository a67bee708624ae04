"""Administrative diagnostics: database overview and cache control."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends
from sqlalchemy import inspect
from sqlalchemy.orm import Session

from obd_dashboard import crud
from obd_dashboard.api.deps import get_db, require_admin
from obd_dashboard.cache import query_cache
from obd_dashboard.db.query_log import query_log
from obd_dashboard.models_db import User

logger = structlog.get_logger()

router = APIRouter(dependencies=[Depends(require_admin)])


@router.get("/database")
def database_overview(db: Session = Depends(get_db)) -> dict:
    """Table names, user count, one sample user and recent statement log."""
    tables = sorted(inspect(db.get_bind()).get_table_names())
    user_count = db.query(User).count()
    sample = db.query(User).order_by(User.id).first()
    sample_user = None
    if sample is not None:
        sample_user = {
            "id": sample.id,
            "username": sample.username,
            "email": sample.email,
            "role": sample.role,
            "status": sample.status,
            "projects": [p.name for p in crud.user_projects(db, sample.id)],
        }
    return {
        "tables": tables,
        "user_count": user_count,
        "sample_user": sample_user,
        "recent_queries": query_log.recent(),
        "query_cache_size": query_cache.size(),
    }


@router.post("/cache/clear")
def clear_cache() -> dict:
    cleared = query_cache.size()
    query_cache.clear()
    logger.info("query_cache_cleared", entries=cleared)
    return {"status": "success", "cleared": cleared}
