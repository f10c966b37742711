"""
Table extraction and table-processing helpers.

Extraction turns a ``<table>`` into a normalized :class:`TableResource`
(every row as wide as the header row).  The processing helpers compute what
the backend needs to draw it: column widths, formatted header/body cells and
merged-cell spans.
"""
import copy
import logging
from typing import Any, Dict, List, Optional

from bs4 import Tag

from .css_utils import normalize_alignment, parse_style
from .errors import TableExtractionError
from .models import TableResource

logger = logging.getLogger(__name__)

TOTAL_TABLE_WIDTH_IN = 5.0
MIN_COLUMN_WIDTH_IN = 0.5

HEADER_FORMAT = {"bold": True, "color": "333333", "fill": "EEEEEE", "align": "center", "valign": "middle"}
ROW_FORMAT = {"color": "333333", "align": "left", "valign": "middle"}
ZEBRA_FILL = "F9F9F9"
BORDER_COLOR = "666666"


def _own_rows(table: Tag, scope: Optional[Tag] = None) -> List[Tag]:
    """``<tr>`` elements of *table* itself, skipping rows of nested tables."""
    scope = scope or table
    return [tr for tr in scope.find_all("tr") if tr.find_parent("table") is table]


def _cell_text(cell: Tag) -> str:
    return " ".join(cell.get_text().split())


def _span(cell: Tag, name: str) -> int:
    try:
        value = int(cell.get(name, 1))
    except (TypeError, ValueError):
        return 1
    return value if value > 0 else 1


def _place_cells(cells: List[Tag], reserved) -> List[tuple]:
    """(grid column, cell) pairs for one row.  Columns in *reserved* are
    still covered by a rowspan from above and are stepped over."""
    placed = []
    column = 0
    for cell in cells:
        while column in reserved:
            column += 1
        placed.append((column, cell))
        column += _span(cell, "colspan")
    return placed


def _grid_texts(placed: List[tuple], reserved) -> List[str]:
    """Row text laid out on the grid; spanned and reserved slots stay empty."""
    ends = [column + _span(cell, "colspan") for column, cell in placed]
    width = max(ends + [c + 1 for c in reserved] + [0])
    texts = [""] * width
    for column, cell in placed:
        texts[column] = _cell_text(cell)
    return texts


def normalize_table(headers: List[str], rows: List[List[str]]):
    """Right-pad headers and rows with ``""`` to a common width."""
    max_columns = max([len(headers)] + [len(r) for r in rows]) if (headers or rows) else 0
    norm_headers = list(headers) + [""] * (max_columns - len(headers))
    norm_rows = [list(r) + [""] * (max_columns - len(r)) for r in rows]
    return norm_headers, norm_rows


def extract_table(table: Tag) -> TableResource:
    """Build a normalized :class:`TableResource` from a ``<table>`` element."""
    try:
        all_rows = _own_rows(table)

        thead = table.find("thead")
        header_row = None
        if thead is not None and thead.find_parent("table") is table:
            head_rows = _own_rows(table, thead)
            header_row = head_rows[0] if head_rows else None
        if header_row is None and all_rows:
            header_row = all_rows[0]

        headers = []
        if header_row is not None:
            header_cells = header_row.find_all(["th", "td"], recursive=False)
            headers = _grid_texts(_place_cells(header_cells, set()), set())

        tbodies = [b for b in table.find_all("tbody") if b.find_parent("table") is table]
        if tbodies:
            body_rows = [tr for body in tbodies for tr in _own_rows(table, body) if tr is not header_row]
        else:
            start = 0
            if header_row is not None:
                start = next(i for i, tr in enumerate(all_rows) if tr is header_row) + 1
            body_rows = all_rows[start:]

        table_style = parse_style(table.get("style"))
        table_align = normalize_alignment(table_style.get("text-align")) or "left"

        rows: List[List[str]] = []
        cell_details: List[List[Dict[str, Any]]] = []
        pending: Dict[int, set] = {}
        for tr in body_rows:
            cells = tr.find_all(["td", "th"], recursive=False)
            if not cells:
                continue
            row_index = len(rows)
            reserved = pending.pop(row_index, set())
            placed = _place_cells(cells, reserved)
            for column, c in placed:
                covered = range(column, column + _span(c, "colspan"))
                for offset in range(1, _span(c, "rowspan")):
                    pending.setdefault(row_index + offset, set()).update(covered)
            rows.append(_grid_texts(placed, reserved))
            cell_details.append([
                {
                    "col": column,
                    "content": c.decode_contents().strip(),
                    "colspan": _span(c, "colspan"),
                    "rowspan": _span(c, "rowspan"),
                    "align": normalize_alignment(c.get("align")) or table_align,
                    "valign": (c.get("valign") or "middle").lower(),
                }
                for column, c in placed
            ])

        headers, rows = normalize_table(headers, rows)

        style = {
            "width": table.get("width") or table_style.get("width") or "100%",
            "border": table.has_attr("border") or "border" in table_style,
            "cellPadding": table.get("cellpadding") or "5",
            "cellSpacing": table.get("cellspacing") or "0",
            "backgroundColor": table_style.get("background-color") or table.get("bgcolor") or "transparent",
            "textAlign": table_align,
            "cellDetails": cell_details,
        }
        return TableResource(headers=headers, rows=rows, style=style)
    except (AttributeError, TypeError, ValueError) as exc:
        raise TableExtractionError(f"Failed to extract table: {exc}") from exc


def extract_tables(root: Tag) -> List[TableResource]:
    tables = []
    for table in root.find_all("table"):
        try:
            tables.append(extract_table(table))
        except TableExtractionError as exc:
            logger.warning(str(exc))
    return tables


# ----------------------------------------------------------------------
# Processing helpers (used while assembling slides)
# ----------------------------------------------------------------------

def process_table(table: TableResource) -> TableResource:
    """Return a normalized copy of *table*; the input is left untouched."""
    try:
        headers, rows = normalize_table(table.headers, table.rows)
        return TableResource(headers=headers, rows=rows, style=copy.deepcopy(table.style))
    except (AttributeError, TypeError) as exc:
        raise TableExtractionError(f"Failed to normalize table: {exc}") from exc


def calculate_column_widths(table: TableResource) -> List[float]:
    """Column widths in inches, proportional to the longest content per column."""
    columns = table.column_count
    if columns == 0:
        return []

    lengths = []
    for col in range(columns):
        cells = [table.headers[col] if col < len(table.headers) else ""]
        cells += [row[col] if col < len(row) else "" for row in table.rows]
        lengths.append(max(len(c) for c in cells))

    total = sum(lengths)
    if total == 0:
        return [1.0] * columns
    return [max(length / total * TOTAL_TABLE_WIDTH_IN, MIN_COLUMN_WIDTH_IN) for length in lengths]


def format_headers(headers: List[str]) -> List[Dict[str, Any]]:
    return [dict(HEADER_FORMAT, text=h) for h in headers]


def format_rows(rows: List[List[str]]) -> List[List[Dict[str, Any]]]:
    """Body cells; odd rows get the zebra fill."""
    formatted = []
    for index, row in enumerate(rows):
        fill = ZEBRA_FILL if index % 2 == 1 else None
        formatted.append([dict(ROW_FORMAT, text=cell, fill=fill) for cell in row])
    return formatted


def merged_cells(table: TableResource) -> List[Dict[str, int]]:
    """Spans from ``cellDetails`` at their grid columns.  Row indices count
    the header row."""
    merges = []
    for row_index, details in enumerate(table.style.get("cellDetails") or []):
        for col_index, detail in enumerate(details):
            rowspan = detail.get("rowspan", 1)
            colspan = detail.get("colspan", 1)
            if rowspan > 1 or colspan > 1:
                merges.append({
                    "row": row_index + 1,
                    "col": detail.get("col", col_index),
                    "rowspan": rowspan,
                    "colspan": colspan,
                })
    return merges


def apply_table_styling(table: TableResource, positions: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Backend options for *table*: geometry, widths, formatted cells, merges."""
    try:
        options: Dict[str, Any] = {"x": 0.5, "y": 2.0, "w": 0.9}
        if positions:
            options.update(positions)
        options["col_widths"] = calculate_column_widths(table)
        options["header_cells"] = format_headers(table.headers) if any(table.headers) else []
        options["body_cells"] = format_rows(table.rows)
        options["border"] = {"pt": 1 if table.style.get("border", True) else 0, "color": BORDER_COLOR}
        merges = merged_cells(table)
        if merges:
            options["merged_cells"] = merges
        return options
    except (AttributeError, TypeError, KeyError) as exc:
        raise TableExtractionError(f"Failed to style table: {exc}") from exc
