"""Public shipment tracking by tracking code."""

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from src.storefront.api.http.deps import get_db_session, get_encryption
from src.storefront.core.services.encryption import FieldEncryptionService
from src.storefront.core.services.tracking import TrackingInfo, build_tracking_info
from src.storefront.entities.service.order import OrderItemRepository, OrderRepository

router = APIRouter(prefix="/tracking", tags=["tracking"])


@router.get("/search", response_model=TrackingInfo)
def search_tracking(
    code: str | None = None,
    db: Session = Depends(get_db_session),
    encryption: FieldEncryptionService = Depends(get_encryption),
) -> TrackingInfo:
    code = (code or "").strip()
    if not code:
        raise HTTPException(status_code=400, detail="Tracking code is required")

    order = OrderRepository(db, encryption).get_by_tracking_code(code)
    if order is None:
        raise HTTPException(status_code=404, detail="Tracking code not found")
    return build_tracking_info(order, OrderItemRepository(db).list_for_order(order.id))
