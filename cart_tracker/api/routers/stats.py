# cart_tracker/api/routers/stats.py
from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from cart_tracker.api.dependencies import get_service
from cart_tracker.data.database import get_db
from cart_tracker.domain.schemas import StatisticsOut
from cart_tracker.services.export_service import ExportService
from cart_tracker.services.tracker_service import TrackerService

router = APIRouter(prefix="/stats", tags=["stats"])


@router.get("", response_model=StatisticsOut)
def get_stats(
    period: int = Query(30, ge=1, le=3650, description="Okres w dniach (7, 30, 90...)"),
    svc: TrackerService = Depends(get_service),
):
    try:
        return svc.get_statistics(period)
    except SQLAlchemyError:
        raise HTTPException(status_code=503, detail="Storage unavailable")


@router.get("/export")
def export_csv(db: Session = Depends(get_db)):
    svc = ExportService(db)
    try:
        body = svc.export_csv()
    except SQLAlchemyError:
        raise HTTPException(status_code=503, detail="Storage unavailable")

    return Response(
        content=body,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{svc.filename()}"'},
    )
