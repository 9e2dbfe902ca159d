from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from core.database import Database, get_database, get_db
from modules.orders import schemas, service
from modules.reports.excel import build_cutting_orders_excel, build_purchase_orders_excel

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

cutting_router = APIRouter(prefix="/cutting-orders", tags=["cutting_orders"])
purchase_router = APIRouter(prefix="/purchase-orders", tags=["purchase_orders"])


def _excel_response(stream, filename: str) -> StreamingResponse:
    return StreamingResponse(
        stream,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@cutting_router.post("", response_model=schemas.CuttingOrderReconcileRead)
def reconcile_cutting_orders_endpoint(
    batch: schemas.CuttingOrderBatch, database: Database = Depends(get_database)
):
    return service.reconcile_cutting_orders(database, batch)


@cutting_router.get("", response_model=list[schemas.CuttingOrderRead])
def list_cutting_orders_endpoint(tooling_id: Optional[int] = None, db: Session = Depends(get_db)):
    return service.list_cutting_orders(db, tooling_id)


@cutting_router.get("/excel")
def download_cutting_orders_excel(tooling_id: Optional[int] = None, db: Session = Depends(get_db)):
    stream = build_cutting_orders_excel(service.list_cutting_orders(db, tooling_id))
    return _excel_response(stream, "cutting_orders.xlsx")


@cutting_router.delete("/{order_id}", response_model=schemas.DeleteResult)
def delete_cutting_order_endpoint(order_id: int, db: Session = Depends(get_db)):
    return service.delete_cutting_order(db, order_id)


@purchase_router.post("", response_model=schemas.PurchaseOrderReconcileRead)
def reconcile_purchase_orders_endpoint(
    batch: schemas.PurchaseOrderBatch, database: Database = Depends(get_database)
):
    return service.reconcile_purchase_orders(database, batch)


@purchase_router.get("", response_model=list[schemas.PurchaseOrderRead])
def list_purchase_orders_endpoint(
    tooling_id: Optional[int] = None, status: Optional[str] = None, db: Session = Depends(get_db)
):
    return service.list_purchase_orders(db, tooling_id, status)


@purchase_router.get("/excel")
def download_purchase_orders_excel(
    tooling_id: Optional[int] = None, status: Optional[str] = None, db: Session = Depends(get_db)
):
    stream = build_purchase_orders_excel(service.list_purchase_orders(db, tooling_id, status))
    return _excel_response(stream, "purchase_orders.xlsx")


@purchase_router.put("/{order_id}/status", response_model=schemas.PurchaseOrderRead)
def update_purchase_order_status_endpoint(
    order_id: int, status_in: schemas.PurchaseOrderStatusUpdate, db: Session = Depends(get_db)
):
    return service.update_purchase_order_status(db, order_id, status_in.status)


@purchase_router.delete("/{order_id}", response_model=schemas.DeleteResult)
def delete_purchase_order_endpoint(order_id: int, db: Session = Depends(get_db)):
    return service.delete_purchase_order(db, order_id)


@purchase_router.post("/batch-delete", response_model=schemas.DeleteResult)
def batch_delete_purchase_orders_endpoint(request: schemas.BatchDeleteRequest, db: Session = Depends(get_db)):
    return service.batch_delete_purchase_orders(db, request.ids)
