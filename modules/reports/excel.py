from datetime import date, datetime
from io import BytesIO
from typing import Any, Dict, List, Optional, Sequence, Tuple

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter


def _create_styles():
    """Create reusable style definitions."""
    thin_border = Side(style="thin", color="000000")
    return {
        "title_font": Font(bold=True, size=14),
        "header_font": Font(bold=True, size=10),
        "header_fill": PatternFill(start_color="D9E1F2", end_color="D9E1F2", fill_type="solid"),
        "warning_fill": PatternFill(start_color="FFF2CC", end_color="FFF2CC", fill_type="solid"),
        "subtotal_font": Font(bold=True),
        "border": Border(left=thin_border, right=thin_border, top=thin_border, bottom=thin_border),
        "center_align": Alignment(horizontal="center", vertical="center"),
        "right_align": Alignment(horizontal="right", vertical="center"),
        "left_align": Alignment(horizontal="left", vertical="center"),
    }


def _apply_header_row(ws, row: int, columns: List[str], styles: dict):
    """Apply formatting to a header row."""
    for col_idx, col_name in enumerate(columns, start=1):
        cell = ws.cell(row=row, column=col_idx, value=col_name)
        cell.font = styles["header_font"]
        cell.fill = styles["header_fill"]
        cell.border = styles["border"]
        cell.alignment = styles["center_align"]


def _apply_data_row(ws, row: int, values: List[Any], styles: dict, alignments: Optional[List[str]] = None):
    """Apply formatting to a data row."""
    for col_idx, value in enumerate(values, start=1):
        cell = ws.cell(row=row, column=col_idx, value=value)
        cell.border = styles["border"]
        if alignments and col_idx <= len(alignments):
            align_type = alignments[col_idx - 1]
            cell.alignment = styles.get(f"{align_type}_align", styles["left_align"])


def _set_column_widths(ws, widths: List[int]):
    """Set column widths."""
    for col_idx, width in enumerate(widths, start=1):
        ws.column_dimensions[get_column_letter(col_idx)].width = width


def _format_number(value: Optional[float], decimals: int = 2) -> str:
    if value is None:
        return "-"
    return f"{value:,.{decimals}f}"


def _format_date(value: Any) -> str:
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d %H:%M")
    if isinstance(value, date):
        return value.isoformat()
    return value or "-"


# (header, record key, alignment, width)
Column = Tuple[str, str, str, int]

CUTTING_COLUMNS: Sequence[Column] = (
    ("Inventory No.", "inventory_number", "left", 16),
    ("Project", "project_name", "left", 24),
    ("Drawing No.", "part_drawing_number", "left", 18),
    ("Part", "part_name", "left", 22),
    ("Material", "material", "left", 14),
    ("Specifications", "specifications", "left", 22),
    ("Qty", "part_quantity", "center", 8),
    ("Total Weight (kg)", "total_weight", "right", 16),
    ("Source", "material_source", "center", 12),
    ("Remarks", "remarks", "left", 24),
    ("Created", "created_at", "center", 18),
)

PURCHASE_COLUMNS: Sequence[Column] = (
    ("Inventory No.", "inventory_number", "left", 16),
    ("Project", "project_name", "left", 24),
    ("Item", "part_name", "left", 22),
    ("Qty", "part_quantity", "center", 8),
    ("Unit", "unit", "center", 8),
    ("Model", "model", "left", 20),
    ("Supplier", "supplier", "left", 18),
    ("Required", "required_date", "center", 12),
    ("Weight (kg)", "weight", "right", 12),
    ("Total Price", "total_price", "right", 12),
    ("Status", "status", "center", 12),
)

_NUMERIC_DECIMALS = {"total_weight": 3, "weight": 3, "total_price": 2}
_DATE_KEYS = {"created_at", "required_date"}


def _cell_value(record: Dict[str, Any], key: str) -> Any:
    value = record.get(key)
    if key in _NUMERIC_DECIMALS:
        return _format_number(value, _NUMERIC_DECIMALS[key])
    if key in _DATE_KEYS:
        return _format_date(value)
    return "-" if value is None else value


def _build_sheet(title: str, records: List[Dict[str, Any]], columns: Sequence[Column], total_key: str) -> BytesIO:
    wb = Workbook()
    ws = wb.active
    ws.title = title[:31]
    styles = _create_styles()

    ws.cell(row=1, column=1, value=title.upper()).font = styles["title_font"]
    ws.merge_cells(start_row=1, start_column=1, end_row=1, end_column=len(columns))
    ws.cell(row=2, column=1, value=f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M')}")

    current_row = 4
    _apply_header_row(ws, current_row, [c[0] for c in columns], styles)
    current_row += 1

    alignments = [c[2] for c in columns]
    for record in records:
        _apply_data_row(ws, current_row, [_cell_value(record, c[1]) for c in columns], styles, alignments)
        if record.get(total_key) is None:
            # Missing weight/price: flag the row for the buyer.
            for col in range(1, len(columns) + 1):
                ws.cell(row=current_row, column=col).fill = styles["warning_fill"]
        current_row += 1

    total = sum(r.get(total_key) or 0 for r in records)
    subtotal = ["TOTAL"] + [""] * (len(columns) - 1)
    total_index = [c[1] for c in columns].index(total_key)
    subtotal[total_index] = _format_number(total, _NUMERIC_DECIMALS[total_key])
    _apply_data_row(ws, current_row, subtotal, styles, alignments)
    for col in range(1, len(columns) + 1):
        ws.cell(row=current_row, column=col).font = styles["subtotal_font"]

    _set_column_widths(ws, [c[3] for c in columns])

    stream = BytesIO()
    wb.save(stream)
    stream.seek(0)
    return stream


def build_cutting_orders_excel(records: List[Dict[str, Any]]) -> BytesIO:
    """Cutting list for the saw/cutting shop, one row per order."""
    return _build_sheet("Cutting Orders", records, CUTTING_COLUMNS, "total_weight")


def build_purchase_orders_excel(records: List[Dict[str, Any]]) -> BytesIO:
    return _build_sheet("Purchase Orders", records, PURCHASE_COLUMNS, "total_price")
