"""Hierarchical part codes: parent inventory number followed by a two-digit sequence."""

from typing import Iterable, List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from core.database import Database
from core.errors import ConstraintViolation, NotFoundException
from core.logging import get_logger
from modules.tooling.models import PartInfo, ToolingInfo

logger = get_logger(__name__)

PART_SEQUENCE_WIDTH = 2


def format_part_code(parent_code: str, sequence: int) -> str:
    return f"{parent_code}{sequence:0{PART_SEQUENCE_WIDTH}d}"


def parse_sequence(parent_code: Optional[str], code: Optional[str]) -> Optional[int]:
    """Sequence number of ``code`` under ``parent_code``, or None if not derived from it."""
    if not parent_code or not code:
        return None
    code = code.strip()
    if not code.startswith(parent_code):
        return None
    suffix = code[len(parent_code):]
    if len(suffix) < PART_SEQUENCE_WIDTH or not suffix.isdigit():
        return None
    return int(suffix)


def next_sequence(parent_code: str, issued: int, sibling_codes: Iterable[Optional[str]]) -> int:
    """``issued`` is the highest sequence ever handed out, so deleted numbers stay retired."""
    parsed = (parse_sequence(parent_code, code) for code in sibling_codes)
    highest = max((seq for seq in parsed if seq is not None), default=0)
    return max(issued or 0, highest) + 1


def lock_tooling(session: Session, tooling_id: int) -> ToolingInfo:
    # Row lock serializes allocation per parent; a no-op on SQLite, where the
    # unique (tooling_id, part_inventory_number) constraint catches races instead.
    tooling = session.query(ToolingInfo).filter(ToolingInfo.id == tooling_id).with_for_update().first()
    if not tooling:
        raise NotFoundException("Tooling not found")
    return tooling


class SequenceAllocator:
    def __init__(self, database: Database):
        self.database = database

    def allocate_part_code(self, tooling_id: int, explicit_code: Optional[str] = None) -> str:
        """Claim the next code under a tooling in its own transaction."""

        def _work(session: Session) -> str:
            return self.claim(session, lock_tooling(session, tooling_id), explicit_code)

        return self.database.run_in_transaction(_work)

    def claim(self, session: Session, tooling: ToolingInfo, explicit_code: Optional[str] = None) -> str:
        """Return the code for a new part of ``tooling``; the caller owns the transaction.

        An explicit code is kept as given, minus surrounding whitespace. An uncoded
        parent yields an empty code.
        """
        sibling_codes = [
            code
            for (code,) in session.query(PartInfo.part_inventory_number).filter(PartInfo.tooling_id == tooling.id)
            if code
        ]
        explicit = (explicit_code or "").strip()
        if explicit:
            if explicit in sibling_codes:
                raise ConstraintViolation(f"Part inventory number {explicit} already exists under this tooling")
            parsed = parse_sequence(tooling.inventory_number, explicit)
            if parsed is not None and parsed > (tooling.part_sequence or 0):
                tooling.part_sequence = parsed
            return explicit

        if not tooling.inventory_number:
            return ""

        sequence = next_sequence(tooling.inventory_number, tooling.part_sequence, sibling_codes)
        tooling.part_sequence = sequence
        code = format_part_code(tooling.inventory_number, sequence)
        logger.debug("Allocated %s under tooling %s", code, tooling.id)
        return code

    def backfill(self, session: Session, tooling: ToolingInfo) -> List[PartInfo]:
        """Give codes, in creation order, to parts added before the parent was coded."""
        if not tooling.inventory_number:
            return []
        parts = (
            session.query(PartInfo)
            .filter(PartInfo.tooling_id == tooling.id)
            .filter(or_(PartInfo.part_inventory_number.is_(None), PartInfo.part_inventory_number == ""))
            .order_by(PartInfo.id)
            .all()
        )
        for part in parts:
            part.part_inventory_number = self.claim(session, tooling)
            session.flush()
        if parts:
            logger.info("Backfilled %d part codes under tooling %s", len(parts), tooling.id)
        return parts
