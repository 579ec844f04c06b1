"""
Admin endpoints: pipeline metrics and stored-record counts.
"""

from fastapi import APIRouter, Depends, Request

from truthlens.api.security import verify_bearer_token
from truthlens.pipelines.analysis_pipeline import ANALYSIS_PREFIX
from truthlens.services.video_service import VIDEO_PREFIX
from truthlens.utils.logging_config import metrics


router = APIRouter(
    prefix="/admin",
    tags=["admin"],
    dependencies=[Depends(verify_bearer_token)],
)


@router.get("/metrics")
def get_metrics(request: Request):
    """Counters, per-step fallback rates, latencies and how many records the store holds."""
    store = request.app.state.store
    stats = metrics.get_stats()
    stats["stored"] = {
        "analyses": len(store.get_by_prefix(ANALYSIS_PREFIX)),
        "videos": len(store.get_by_prefix(VIDEO_PREFIX)),
    }
    return stats


@router.post("/metrics/reset")
def reset_metrics():
    """Zero the counters and timings; stored records are untouched."""
    metrics.reset()
    return {"message": "Metrics reset"}
