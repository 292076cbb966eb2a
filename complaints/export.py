from io import BytesIO

import openpyxl
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter
from django.utils import timezone

SHEET_TITLE = "Complaints"
HEADERS = [
    "Ticket ID",
    "Category",
    "Status",
    "Description",
    "Contact Email",
    "Contact Phone",
    "Date Submitted",
    "Time Submitted",
    "Image URL",
    "Admin Notes",
]
NOT_AVAILABLE = "Not Available"
# spreadsheet apps treat cells starting with these as formulas
FORMULA_PREFIXES = ("=", "+", "-", "@")


def _auto_adjust(ws):
    """Auto adjust column widths"""
    for col in ws.columns:
        max_len = 0
        col_letter = get_column_letter(col[0].column)
        for cell in col:
            v = str(cell.value) if cell.value is not None else ""
            max_len = max(max_len, len(v))
        ws.column_dimensions[col_letter].width = min(max_len + 4, 80)


def _keep_as_text(cells):
    """Store submitted text verbatim, never as a formula."""
    for cell in cells:
        if isinstance(cell.value, str) and cell.value.startswith(FORMULA_PREFIXES):
            cell.data_type = "s"


def complaint_row(complaint):
    submitted = complaint.get("submitted_at")
    date_str = time_str = ""
    if submitted:
        local = timezone.localtime(submitted)
        date_str = local.strftime("%Y-%m-%d")
        time_str = local.strftime("%H:%M:%S")
    return [
        complaint["ticket_id"],
        complaint["category_label"],
        complaint["status_label"],
        complaint["description"],
        complaint["contact_email"],
        complaint["contact_phone"],
        date_str,
        time_str,
        complaint["file_url"] or NOT_AVAILABLE,
        complaint["admin_notes"] or NOT_AVAILABLE,
    ]


def build_complaints_workbook(complaints):
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = SHEET_TITLE
    ws.append(HEADERS)
    for cell in ws[1]:
        cell.font = Font(bold=True)
    for c in complaints:
        ws.append(complaint_row(c))
        _keep_as_text(ws[ws.max_row])
    ws.freeze_panes = "A2"
    _auto_adjust(ws)
    return wb


def workbook_bytes(wb) -> BytesIO:
    buf = BytesIO()
    wb.save(buf)
    buf.seek(0)
    return buf
