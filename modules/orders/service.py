from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from core.database import Database
from core.errors import NotFoundException
from modules.orders import models, schemas
from modules.orders.generation import build_candidates
from modules.orders.reconciler import UpsertReconciler, serialize_cutting_order, serialize_purchase_order
from modules.tooling.service import get_tooling_model


def reconcile_cutting_orders(database: Database, batch: schemas.CuttingOrderBatch) -> Dict[str, Any]:
    return UpsertReconciler(database).reconcile_cutting_orders(batch.orders).as_dict()


def reconcile_purchase_orders(database: Database, batch: schemas.PurchaseOrderBatch) -> Dict[str, Any]:
    return UpsertReconciler(database).reconcile_purchase_orders(batch.orders, batch.tooling_id).as_dict()


def generate_for_tooling(database: Database, tooling_id: int) -> Dict[str, Any]:
    with database.session() as session:
        tooling = get_tooling_model(session, tooling_id)
        cutting, purchase = build_candidates(session, tooling, database.settings)
    cutting_result, purchase_result = UpsertReconciler(database).reconcile_generated(cutting, purchase)
    return {"cutting": cutting_result.as_dict(), "purchase": purchase_result.as_dict()}


def list_cutting_orders(db: Session, tooling_id: Optional[int] = None) -> List[Dict[str, Any]]:
    query = db.query(models.CuttingOrder).filter(models.CuttingOrder.is_deleted.is_(False))
    if tooling_id is not None:
        query = query.filter(models.CuttingOrder.tooling_id == tooling_id)
    return [serialize_cutting_order(o) for o in query.order_by(models.CuttingOrder.id).all()]


def delete_cutting_order(db: Session, order_id: int) -> Dict[str, Any]:
    """Soft delete; regenerating the same order revives the record under its old id."""
    order = (
        db.query(models.CuttingOrder)
        .filter(models.CuttingOrder.id == order_id)
        .filter(models.CuttingOrder.is_deleted.is_(False))
        .first()
    )
    if not order:
        raise NotFoundException("Cutting order not found")
    order.is_deleted = True
    db.commit()
    return {"deleted": 1}


def list_purchase_orders(
    db: Session, tooling_id: Optional[int] = None, status: Optional[str] = None
) -> List[Dict[str, Any]]:
    query = db.query(models.PurchaseOrder)
    if tooling_id is not None:
        query = query.filter(models.PurchaseOrder.tooling_id == tooling_id)
    if status:
        query = query.filter(models.PurchaseOrder.status == status)
    return [serialize_purchase_order(o) for o in query.order_by(models.PurchaseOrder.id).all()]


def _get_purchase_order_model(db: Session, order_id: int) -> models.PurchaseOrder:
    order = db.query(models.PurchaseOrder).filter(models.PurchaseOrder.id == order_id).first()
    if not order:
        raise NotFoundException("Purchase order not found")
    return order


def update_purchase_order_status(db: Session, order_id: int, status: str) -> Dict[str, Any]:
    order = _get_purchase_order_model(db, order_id)
    order.status = status
    db.commit()
    db.refresh(order)
    return serialize_purchase_order(order)


def delete_purchase_order(db: Session, order_id: int) -> Dict[str, Any]:
    order = _get_purchase_order_model(db, order_id)
    db.delete(order)
    db.commit()
    return {"deleted": 1}


def batch_delete_purchase_orders(db: Session, ids: List[int]) -> Dict[str, Any]:
    deleted = (
        db.query(models.PurchaseOrder)
        .filter(models.PurchaseOrder.id.in_(ids))
        .delete(synchronize_session=False)
    )
    db.commit()
    return {"deleted": deleted}
