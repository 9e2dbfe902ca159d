from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from core.database import Database, get_database, get_db
from modules.orders import service as order_service
from modules.orders.schemas import GeneratedOrdersRead
from modules.tooling import schemas, service

router = APIRouter(prefix="/tooling", tags=["tooling"])


@router.post("", response_model=schemas.ToolingRead)
def create_tooling_endpoint(tooling_in: schemas.ToolingCreate, db: Session = Depends(get_db)):
    return service.create_tooling(db, tooling_in)


@router.get("", response_model=list[schemas.ToolingRead])
def list_toolings_endpoint(db: Session = Depends(get_db)):
    return service.list_toolings(db)


@router.get("/{tooling_id}", response_model=schemas.ToolingRead)
def get_tooling_endpoint(tooling_id: int, db: Session = Depends(get_db)):
    return service.get_tooling(db, tooling_id)


@router.put("/{tooling_id}", response_model=schemas.ToolingRead)
def update_tooling_endpoint(
    tooling_id: int, tooling_in: schemas.ToolingUpdate, database: Database = Depends(get_database)
):
    return service.update_tooling(database, tooling_id, tooling_in)


@router.delete("/{tooling_id}", response_model=schemas.ToolingDeleteResult)
def delete_tooling_endpoint(tooling_id: int, cascade: bool = False, db: Session = Depends(get_db)):
    return service.delete_tooling(db, tooling_id, cascade)


@router.post("/{tooling_id}/part-codes", response_model=schemas.PartCodeRead)
def allocate_part_code_endpoint(
    tooling_id: int, request: schemas.PartCodeRequest, database: Database = Depends(get_database)
):
    return service.allocate_part_code(database, tooling_id, request.explicit_code)


@router.get("/{tooling_id}/parts", response_model=list[schemas.PartRead])
def list_parts_endpoint(tooling_id: int, db: Session = Depends(get_db)):
    return service.list_parts(db, tooling_id)


@router.post("/{tooling_id}/parts", response_model=schemas.PartRead)
def create_part_endpoint(
    tooling_id: int, part_in: schemas.PartCreate, database: Database = Depends(get_database)
):
    return service.create_part(database, tooling_id, part_in)


@router.delete("/parts/{part_id}", status_code=204)
def delete_part_endpoint(part_id: int, db: Session = Depends(get_db)):
    service.delete_part(db, part_id)


@router.get("/{tooling_id}/child-items", response_model=list[schemas.ChildItemRead])
def list_child_items_endpoint(tooling_id: int, db: Session = Depends(get_db)):
    return service.list_child_items(db, tooling_id)


@router.post("/{tooling_id}/child-items", response_model=schemas.ChildItemRead)
def create_child_item_endpoint(tooling_id: int, item_in: schemas.ChildItemCreate, db: Session = Depends(get_db)):
    return service.create_child_item(db, tooling_id, item_in)


@router.post("/{tooling_id}/orders/generate", response_model=GeneratedOrdersRead)
def generate_orders_endpoint(tooling_id: int, database: Database = Depends(get_database)):
    return order_service.generate_for_tooling(database, tooling_id)
