"""
src/tools/exports.py — write back-office records to JSON, CSV, XLSX and PDF.

Provides:
- export_json(obj, path): write JSON to file
- export_csv(records, path): write list-of-dicts to CSV
- export_xlsx(rows, path): write list-of-dicts to a single worksheet (openpyxl)
- export_invoice_pdf(invoice, path): render one invoice to PDF (ReportLab)

Notes:
- Column order is taken from `headers` when given, else from the first row.
- Missing cells are written empty, never as "None".
"""


import csv
import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from loguru import logger
from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from config import DEFAULT_CURRENCY, format_money
from tools.records import to_float


def _columns(rows: List[Dict[str, Any]], headers: Optional[Sequence[str]]) -> List[str]:

    if headers:
        return list(headers)

    if not rows:
        raise ValueError("No records to export.")

    return list(rows[0].keys())


def _ensure_parent(path: str) -> None:

    Path(path).parent.mkdir(parents=True, exist_ok=True)


# --- JSON ----------------------------------------------------------------------
def export_json(obj: Any, path: str) -> str:
    """
    Export any serialisable object as JSON.

    Args:
        obj: Python dict/list/primitive
        path: file path for saving

    Returns: path
    """

    _ensure_parent(path)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(obj, f, indent=2, ensure_ascii=False)

    return path


# --- CSV -----------------------------------------------------------------------
def export_csv(records: List[Dict[str, Any]], path: str, headers: Optional[Sequence[str]] = None) -> str:
    """
    Export list of dicts to CSV.

    Args:
        records: e.g. ws.orders.filtered()
        path: file path for saving
        headers: column order; defaults to the first record's keys

    Returns: path
    """

    columns = _columns(records, headers)
    _ensure_parent(path)
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=columns, extrasaction="ignore")
        writer.writeheader()
        for r in records:
            writer.writerow({c: "" if r.get(c) is None else r.get(c) for c in columns})

    return path


# --- XLSX ----------------------------------------------------------------------
def export_xlsx(
    rows: List[Dict[str, Any]],
    path: str,
    *,
    sheet_name: str = "Sheet1",
    headers: Optional[Sequence[str]] = None,
) -> str:
    """
    Export list of dicts to a one-sheet workbook with a bold header row.

    An empty `rows` with explicit `headers` still produces a header-only sheet.

    Returns: path
    """

    columns = _columns(rows, headers)

    wb = Workbook()
    ws = wb.active
    ws.title = sheet_name
    ws.append(columns)
    for cell in ws[1]:
        cell.font = Font(bold=True)

    for r in rows:
        ws.append([r.get(c) for c in columns])

    for i, name in enumerate(columns, start=1):
        width = max([len(str(name))] + [len(str(r.get(name) or "")) for r in rows])
        ws.column_dimensions[get_column_letter(i)].width = min(width + 2, 60)

    _ensure_parent(path)
    wb.save(path)
    logger.debug("Wrote {} rows to {}", len(rows), path)

    return path


# --- PDF -----------------------------------------------------------------------
def export_invoice_pdf(invoice: Dict[str, Any], path: str) -> str:
    """
    Export a single invoice to PDF.

    Args:
        invoice: invoice record (invoiceId, customerName, amount, status, ...)
        path: file path for saving

    Returns: path
    """

    currency = invoice.get("currency") or DEFAULT_CURRENCY
    number = invoice.get("invoiceId") or invoice.get("id")

    _ensure_parent(path)
    doc = SimpleDocTemplate(path, pagesize=A4)
    styles = getSampleStyleSheet()
    elements = []

    elements.append(Paragraph(f"<b>Invoice {number}</b>", styles["Title"]))
    elements.append(Paragraph(f"Customer: {invoice.get('customerName', '')}", styles["Normal"]))
    elements.append(Paragraph(f"Date: {str(invoice.get('createdAt') or '')[:10]}", styles["Normal"]))
    if invoice.get("dueDate"):
        elements.append(Paragraph(f"Due: {str(invoice['dueDate'])[:10]}", styles["Normal"]))
    elements.append(Spacer(1, 12))

    data = [["Order", "Status", "Amount"]]
    data.append([
        str(invoice.get("orderId") or "-"),
        "Paid" if invoice.get("isPaid") else str(invoice.get("status") or "pending").capitalize(),
        format_money(to_float(invoice.get("amount")), currency),
    ])
    if invoice.get("isPaid"):
        data.append(["", "Paid by", str(invoice.get("paidBy") or "system")])

    table = Table(data, colWidths=[150, 150, 150])
    table.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), colors.lightgrey),
        ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
        ("ALIGN", (2, 1), (-1, -1), "RIGHT"),
    ]))
    elements.append(table)

    doc.build(elements)

    return path
