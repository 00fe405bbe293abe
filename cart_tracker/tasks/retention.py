# cart_tracker/tasks/retention.py
from cart_tracker.celery_worker import celery_app
from cart_tracker.data.database import SessionLocal
from cart_tracker.services.order_client import OrderClient
from cart_tracker.services.product_client import ProductClient
from cart_tracker.services.tracker_service import TrackerService
from cart_tracker.utils.logging import get_logger

logger = get_logger(__name__)


@celery_app.task(name="cart_tracker.tasks.retention.sweep_retention_task")
def sweep_retention_task():
    logger.info("Retention sweep task started")

    db = SessionLocal()
    try:
        svc = TrackerService(
            db=db,
            product_client=ProductClient(),
            order_client=OrderClient(),
        )
        removed = svc.sweep_retention()
    finally:
        db.close()

    return {"removed": removed}
