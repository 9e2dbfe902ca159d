"""Natural keys for order candidates.

A key is built only from identity fields, so regenerating the same order after
editing its name, supplier, remarks or weight maps to the same stored record.
"""

import json
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple, Union

from core.errors import InvalidCandidate
from modules.orders.schemas import CuttingOrderCandidate, PurchaseOrderCandidate

Candidate = Union[CuttingOrderCandidate, PurchaseOrderCandidate]


@dataclass(frozen=True)
class NaturalKey:
    kind: str
    values: Tuple[Any, ...]

    @property
    def token(self) -> str:
        """Canonical form stored in the unique ``natural_key`` column."""
        return json.dumps([self.kind, *self.values], ensure_ascii=False, separators=(",", ":"))


def _text(value: Optional[str]) -> str:
    return (value or "").strip()


def _require(fields: Sequence[Tuple[str, Any]]) -> None:
    missing = [name for name, value in fields if value is None or value == ""]
    if missing:
        raise InvalidCandidate(f"cannot be keyed: no part_id and missing {', '.join(missing)}")


def cutting_order_key(candidate: CuttingOrderCandidate) -> NaturalKey:
    if candidate.part_id is not None:
        return NaturalKey("part", (candidate.part_id,))
    drawing = _text(candidate.part_drawing_number)
    source = _text(candidate.material_source)
    _require([("tooling_id", candidate.tooling_id), ("part_drawing_number", drawing), ("material_source", source)])
    return NaturalKey("line", (candidate.tooling_id, drawing, source))


def purchase_order_key(candidate: PurchaseOrderCandidate) -> NaturalKey:
    if candidate.part_id is not None:
        return NaturalKey("part", (candidate.part_id,))
    name = _text(candidate.part_name)
    _require([("tooling_id", candidate.tooling_id), ("part_name", name)])
    return NaturalKey("item", (candidate.tooling_id, name))


def key_for(candidate: Candidate) -> NaturalKey:
    if isinstance(candidate, CuttingOrderCandidate):
        return cutting_order_key(candidate)
    if isinstance(candidate, PurchaseOrderCandidate):
        return purchase_order_key(candidate)
    raise InvalidCandidate(f"unsupported order type {type(candidate).__name__}")


def build_keys(candidates: Sequence[Candidate]) -> List[NaturalKey]:
    """Key every candidate or reject the whole batch, naming the first bad one."""
    keys = []
    for index, candidate in enumerate(candidates):
        try:
            keys.append(key_for(candidate))
        except InvalidCandidate as exc:
            raise InvalidCandidate(exc.message, index=index) from None
    return keys
