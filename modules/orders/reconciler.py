"""Batch upsert of generated orders keyed by business identity.

Each batch is keyed up front (an unkeyable candidate rejects the batch before
anything is read or written), collapsed so the last candidate per key wins,
then matched against the store with a single ``natural_key IN (...)`` query
and written in one transaction. The unique ``natural_key`` column turns a
concurrent insert of the same order into a conflict that the transaction
runner retries on a fresh snapshot.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Type

from sqlalchemy.orm import Session

from core.database import Database
from core.errors import InvalidCandidate, NotFoundException
from core.logging import get_logger
from core.settings import Settings
from modules.orders import models, schemas
from modules.orders.identity import Candidate, NaturalKey, build_keys
from modules.tooling.models import PartInfo, ToolingInfo

logger = get_logger(__name__)

CUTTING_PAYLOAD_FIELDS = (
    "tooling_id",
    "part_id",
    "inventory_number",
    "project_name",
    "part_drawing_number",
    "part_name",
    "material",
    "specifications",
    "part_quantity",
    "total_weight",
    "material_source",
    "remarks",
)

PURCHASE_PAYLOAD_FIELDS = (
    "tooling_id",
    "part_id",
    "child_item_id",
    "inventory_number",
    "project_name",
    "part_name",
    "part_quantity",
    "unit",
    "model",
    "supplier",
    "required_date",
    "remark",
    "production_unit",
    "demand_date",
    "applicant",
    "weight",
    "total_price",
)

_TIMESTAMP_FIELDS = ("created_at", "updated_at")


@dataclass
class BatchStats:
    inserted: int = 0
    updated: int = 0
    skipped: int = 0

    @property
    def total(self) -> int:
        return self.inserted + self.updated + self.skipped

    def as_dict(self) -> Dict[str, int]:
        return {"inserted": self.inserted, "updated": self.updated, "skipped": self.skipped}


@dataclass
class ReconcileResult:
    records: List[Dict[str, Any]] = field(default_factory=list)
    stats: BatchStats = field(default_factory=BatchStats)

    def as_dict(self) -> Dict[str, Any]:
        return {"data": self.records, "stats": self.stats.as_dict()}


@dataclass
class _Context:
    settings: Settings
    toolings: Dict[int, ToolingInfo]
    parts: Dict[int, PartInfo]


@dataclass(frozen=True)
class _OrderKind:
    label: str
    candidate_type: Type
    model: Type
    payload_fields: Tuple[str, ...]
    prepare: Callable[[Any, _Context], Dict[str, Any]]


def _clean(values: Dict[str, Any]) -> Dict[str, Any]:
    cleaned = {}
    for name, value in values.items():
        if isinstance(value, str):
            value = value.strip() or None
        cleaned[name] = value
    return cleaned


def _prepare_cutting(candidate: schemas.CuttingOrderCandidate, ctx: _Context) -> Dict[str, Any]:
    values = _clean(candidate.model_dump(include=set(CUTTING_PAYLOAD_FIELDS)))
    part = ctx.parts.get(candidate.part_id) if candidate.part_id is not None else None
    if part is not None:
        values["tooling_id"] = part.tooling_id
    tooling = ctx.toolings.get(values["tooling_id"])

    if part is not None:
        if values["total_weight"] is None and part.weight and values["part_quantity"] > 0:
            values["total_weight"] = round(part.weight * values["part_quantity"], 3)
        values["inventory_number"] = values["inventory_number"] or part.part_inventory_number or None
    if tooling is not None:
        values["project_name"] = values["project_name"] or tooling.project_name
    if not values["remarks"] and candidate.heat_treatment:
        values["remarks"] = ctx.settings.heat_treatment_remark
    return values


def _prepare_purchase(candidate: schemas.PurchaseOrderCandidate, ctx: _Context) -> Dict[str, Any]:
    values = _clean(candidate.model_dump(include=set(PURCHASE_PAYLOAD_FIELDS)))
    part = ctx.parts.get(candidate.part_id) if candidate.part_id is not None else None
    if part is not None:
        values["tooling_id"] = part.tooling_id
    tooling = ctx.toolings.get(values["tooling_id"])

    if part is not None:
        values["part_name"] = values["part_name"] or part.part_name
        values["inventory_number"] = values["inventory_number"] or part.part_inventory_number or None
    if tooling is not None:
        values["project_name"] = values["project_name"] or tooling.project_name
        values["production_unit"] = values["production_unit"] or tooling.production_unit
        values["applicant"] = values["applicant"] or tooling.recorder
        values["inventory_number"] = values["inventory_number"] or tooling.inventory_number
    values["demand_date"] = values["demand_date"] or values["required_date"]
    return values


CUTTING = _OrderKind(
    label="cutting",
    candidate_type=schemas.CuttingOrderCandidate,
    model=models.CuttingOrder,
    payload_fields=CUTTING_PAYLOAD_FIELDS,
    prepare=_prepare_cutting,
)

PURCHASE = _OrderKind(
    label="purchase",
    candidate_type=schemas.PurchaseOrderCandidate,
    model=models.PurchaseOrder,
    payload_fields=PURCHASE_PAYLOAD_FIELDS,
    prepare=_prepare_purchase,
)


def serialize_cutting_order(order: models.CuttingOrder) -> Dict[str, Any]:
    record = {"id": order.id}
    for name in CUTTING_PAYLOAD_FIELDS + _TIMESTAMP_FIELDS:
        record[name] = getattr(order, name)
    return record


def serialize_purchase_order(order: models.PurchaseOrder) -> Dict[str, Any]:
    record = {"id": order.id}
    for name in PURCHASE_PAYLOAD_FIELDS + _TIMESTAMP_FIELDS:
        record[name] = getattr(order, name)
    record["status"] = order.status
    return record


_SERIALIZERS = {
    models.CuttingOrder: serialize_cutting_order,
    models.PurchaseOrder: serialize_purchase_order,
}


def _collapse(kind: _OrderKind, candidates: Sequence[Candidate]) -> Dict[NaturalKey, Candidate]:
    for index, candidate in enumerate(candidates):
        if not isinstance(candidate, kind.candidate_type):
            raise InvalidCandidate(f"expected a {kind.label} order", index=index)
    keys = build_keys(candidates)
    collapsed: Dict[NaturalKey, Candidate] = {}
    for key, candidate in zip(keys, candidates):
        # Re-assigning keeps the key's first position; the value is the last candidate.
        collapsed[key] = candidate
    return collapsed


def _load_context(session: Session, settings: Settings, batches: Sequence[Dict[NaturalKey, Candidate]]) -> _Context:
    candidates = [c for batch in batches for c in batch.values()]
    part_ids = {c.part_id for c in candidates if c.part_id is not None}
    parts: Dict[int, PartInfo] = {}
    if part_ids:
        parts = {p.id: p for p in session.query(PartInfo).filter(PartInfo.id.in_(part_ids))}
        missing = sorted(part_ids - parts.keys())
        if missing:
            raise NotFoundException(f"Part not found: {', '.join(map(str, missing))}")
        for candidate in candidates:
            part = parts.get(candidate.part_id)
            if part is not None and candidate.tooling_id is not None and candidate.tooling_id != part.tooling_id:
                raise InvalidCandidate(
                    f"part {part.id} belongs to tooling {part.tooling_id}, not tooling {candidate.tooling_id}"
                )

    requested = {c.tooling_id for c in candidates if c.tooling_id is not None}
    tooling_ids = requested | {p.tooling_id for p in parts.values()}
    toolings: Dict[int, ToolingInfo] = {}
    if tooling_ids:
        toolings = {t.id: t for t in session.query(ToolingInfo).filter(ToolingInfo.id.in_(tooling_ids))}
        missing = sorted(requested - toolings.keys())
        if missing:
            raise NotFoundException(f"Tooling not found: {', '.join(map(str, missing))}")
    return _Context(settings=settings, toolings=toolings, parts=parts)


def _differs(row: Any, values: Dict[str, Any]) -> bool:
    return any(getattr(row, name) != value for name, value in values.items())


def _apply(session: Session, kind: _OrderKind, collapsed: Dict[NaturalKey, Candidate], ctx: _Context) -> ReconcileResult:
    model = kind.model
    tokens = [key.token for key in collapsed]
    existing = {row.natural_key: row for row in session.query(model).filter(model.natural_key.in_(tokens))}

    result = ReconcileResult()
    rows = []
    for key, candidate in collapsed.items():
        values = kind.prepare(candidate, ctx)
        row = existing.get(key.token)
        revived = bool(getattr(row, "is_deleted", False))
        if row is None:
            row = model(natural_key=key.token, **values)
            session.add(row)
            result.stats.inserted += 1
            decision = "insert"
        elif revived or _differs(row, values):
            for name, value in values.items():
                setattr(row, name, value)
            if revived:
                row.is_deleted = False
            result.stats.updated += 1
            decision = "update"
        else:
            result.stats.skipped += 1
            decision = "skip"
        logger.debug("%s order %s: %s", kind.label, key.token, decision)
        rows.append(row)

    session.flush()
    serialize = _SERIALIZERS[model]
    result.records = [serialize(row) for row in rows]
    return result


class UpsertReconciler:
    def __init__(self, database: Database, settings: Optional[Settings] = None):
        self.database = database
        self.settings = settings or database.settings

    def reconcile_cutting_orders(self, candidates: Sequence[schemas.CuttingOrderCandidate]) -> ReconcileResult:
        collapsed = _collapse(CUTTING, candidates)
        result = self.database.run_in_transaction(lambda session: self._run(session, CUTTING, collapsed))
        self._log(CUTTING, len(candidates), result)
        return result

    def reconcile_purchase_orders(
        self, candidates: Sequence[schemas.PurchaseOrderCandidate], tooling_id: Optional[int] = None
    ) -> ReconcileResult:
        candidates = _with_tooling(candidates, tooling_id)
        collapsed = _collapse(PURCHASE, candidates)
        result = self.database.run_in_transaction(lambda session: self._run(session, PURCHASE, collapsed))
        self._log(PURCHASE, len(candidates), result)
        return result

    def reconcile_generated(
        self,
        cutting: Sequence[schemas.CuttingOrderCandidate],
        purchase: Sequence[schemas.PurchaseOrderCandidate],
    ) -> Tuple[ReconcileResult, ReconcileResult]:
        """Reconcile both order kinds of one tooling as a single atomic unit."""
        cutting_batch = _collapse(CUTTING, cutting)
        purchase_batch = _collapse(PURCHASE, purchase)

        def _work(session: Session) -> Tuple[ReconcileResult, ReconcileResult]:
            ctx = _load_context(session, self.settings, [cutting_batch, purchase_batch])
            return (
                _apply(session, CUTTING, cutting_batch, ctx) if cutting_batch else ReconcileResult(),
                _apply(session, PURCHASE, purchase_batch, ctx) if purchase_batch else ReconcileResult(),
            )

        cutting_result, purchase_result = self.database.run_in_transaction(_work)
        self._log(CUTTING, len(cutting), cutting_result)
        self._log(PURCHASE, len(purchase), purchase_result)
        return cutting_result, purchase_result

    def _run(self, session: Session, kind: _OrderKind, collapsed: Dict[NaturalKey, Candidate]) -> ReconcileResult:
        ctx = _load_context(session, self.settings, [collapsed])
        return _apply(session, kind, collapsed, ctx)

    @staticmethod
    def _log(kind: _OrderKind, received: int, result: ReconcileResult) -> None:
        stats = result.stats
        logger.info(
            "Reconciled %d %s candidates into %d orders: %d inserted, %d updated, %d skipped",
            received,
            kind.label,
            stats.total,
            stats.inserted,
            stats.updated,
            stats.skipped,
        )


def _with_tooling(
    candidates: Sequence[schemas.PurchaseOrderCandidate], tooling_id: Optional[int]
) -> List[schemas.PurchaseOrderCandidate]:
    if tooling_id is None:
        return list(candidates)
    return [
        c.model_copy(update={"tooling_id": tooling_id})
        if isinstance(c, schemas.PurchaseOrderCandidate) and c.tooling_id is None
        else c
        for c in candidates
    ]
