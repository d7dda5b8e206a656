# cajachica/reports.py
from __future__ import annotations

import base64
import binascii
import logging
from datetime import date
from decimal import Decimal
from functools import partial
from io import BytesIO
from typing import List, Optional
from xml.sax.saxutils import escape

from fastapi import APIRouter, Depends
from fastapi.responses import Response
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas
from reportlab.platypus import Image, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle
from sqlalchemy.orm import Session

from cajachica.config import settings as app_settings
from cajachica.models.base import get_db
from cajachica.models.entities import Transaction, TYPE_INCOME, MOVE_IN, SUBTYPE_REGALIA
from cajachica.services import config_store, inventory, ledger
from cajachica.services.periods import MESES, Period, resolve_period

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/reports", tags=["Reportes"])

DARK = colors.HexColor("#161616")
ACCENT = colors.HexColor("#CEFD7B")
ROW_ALT = colors.HexColor("#F8FCF0")
BOX = colors.HexColor("#F5F5F5")
GREEN = colors.HexColor("#008000")
RED = colors.HexColor("#C80000")


# ------------------------------------------------------------------------------
# Formatierung
# ------------------------------------------------------------------------------
def format_currency(amount: Decimal) -> str:
    """US-Format wie in der Oberflaeche: $1,234.50 bzw. -$5.00."""
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount):,.2f}"


def format_day(d: date) -> str:
    return d.strftime("%d/%m/%Y")


def issue_line(issued: date) -> str:
    return f"{issued.day:02d} de {MESES[issued.month - 1]}, {issued.year} | Día: {issued.day}"


def _decode_logo(logo: Optional[str]):
    """Logo kommt als base64 (optional als data:-URL). Defektes Logo = kein Logo."""
    if not logo:
        return None
    raw = logo.split(",", 1)[1] if logo.startswith("data:") else logo
    try:
        data = base64.b64decode(raw, validate=False)
        reader = ImageReader(BytesIO(data))
        w, h = reader.getSize()
    except (binascii.Error, ValueError, OSError) as e:
        logger.warning("Logo nicht lesbar, Bericht ohne Logo: %s", e)
        return None
    ratio = (w or 100) / (h or 100)
    width = 35 * mm
    height = width / ratio
    if height > 25 * mm:
        height = 25 * mm
        width = height * ratio
    return Image(BytesIO(data), width=width, height=height)


# ------------------------------------------------------------------------------
# Seitenrahmen
# ------------------------------------------------------------------------------
class _NumberedCanvas(canvas.Canvas):
    """Fusszeile mit 'Página i de n'; n steht erst nach dem letzten Blatt fest."""

    def __init__(self, *args, footer: str = "", **kwargs):
        super().__init__(*args, **kwargs)
        self._footer = footer
        self._pages = []

    def showPage(self):
        self._pages.append(dict(self.__dict__))
        self._startPage()

    def save(self):
        total = len(self._pages)
        for state in self._pages:
            self.__dict__.update(state)
            self.setFont("Helvetica", 8)
            self.setFillColor(colors.HexColor("#969696"))
            self.drawCentredString(A4[0] / 2, 12 * mm, self._footer)
            self.drawRightString(A4[0] - 14 * mm, 12 * mm, f"Página {self._pageNumber} de {total}")
            super().showPage()
        super().save()


def _styles():
    styles = getSampleStyleSheet()
    return {
        "title": ParagraphStyle("hdr_title", parent=styles["Title"], fontName="Helvetica-Bold",
                                fontSize=18, leading=22, textColor=ACCENT, alignment=0),
        "sub": ParagraphStyle("hdr_sub", parent=styles["Normal"], fontSize=9, textColor=colors.white),
        "sub_bold": ParagraphStyle("hdr_sub_b", parent=styles["Normal"], fontName="Helvetica-Bold",
                                   fontSize=9, textColor=colors.white),
        "period": ParagraphStyle("period", parent=styles["Normal"], fontName="Helvetica-Bold",
                                 fontSize=10, textColor=colors.HexColor("#3C3C3C")),
        "muted": ParagraphStyle("muted", parent=styles["Normal"], fontSize=8,
                                textColor=colors.HexColor("#787878")),
        "cell": ParagraphStyle("cell", parent=styles["Normal"], fontSize=8.5, leading=10),
    }


def _header(title: str, lines: List[Paragraph], logo, st) -> Table:
    left = [Paragraph(escape(title), st["title"])] + lines
    t = Table([[left, logo or ""]], colWidths=[140 * mm, 42 * mm])
    t.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, -1), DARK),
        ("LINEBELOW", (0, 0), (-1, -1), 2, ACCENT),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ("ALIGN", (1, 0), (1, 0), "RIGHT"),
        ("TOPPADDING", (0, 0), (-1, -1), 8),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 8),
    ]))
    return t


def _detail_table(head: List[str], rows: list, col_widths: list, extra: Optional[list] = None) -> Table:
    t = Table([head] + rows, colWidths=col_widths, repeatRows=1)
    style = [
        ("BACKGROUND", (0, 0), (-1, 0), DARK),
        ("TEXTCOLOR", (0, 0), (-1, 0), ACCENT),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 8.5),
        ("ALIGN", (0, 0), (-1, 0), "CENTER"),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ("TOPPADDING", (0, 0), (-1, -1), 4),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
    ]
    # Leerer Monat: nur Kopfzeile, Zeilen-Styles entfallen
    if rows:
        style.append(("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, ROW_ALT]))
        style.extend(extra or [])
    t.setStyle(TableStyle(style))
    return t


def _build(story: list) -> bytes:
    buf = BytesIO()
    doc = SimpleDocTemplate(buf, pagesize=A4,
                            leftMargin=14 * mm, rightMargin=14 * mm,
                            topMargin=12 * mm, bottomMargin=20 * mm)
    doc.build(story, canvasmaker=partial(_NumberedCanvas, footer=f"{app_settings.ORG_NAME} - Reporte Confidencial"))
    return buf.getvalue()


# ------------------------------------------------------------------------------
# Berichte
# ------------------------------------------------------------------------------
def render_cash_report(period: Period, transactions: List[Transaction],
                       logo: Optional[str] = None, issued: Optional[date] = None) -> bytes:
    st = _styles()
    issued = issued or date.today()
    summary = ledger.summarize(transactions)

    story = [
        _header(f"CAJA CHICA {app_settings.ORG_NAME}", [
            Paragraph(escape(app_settings.ORG_SUBTITLE), st["sub"]),
            Paragraph("ADMINISTRACIÓN DE INGRESOS Y EGRESOS", st["sub_bold"]),
        ], _decode_logo(logo), st),
        Spacer(1, 8),
        Paragraph(f"PERIODO: {period.label}", st["period"]),
        Paragraph(f"Fecha de emisión: {issue_line(issued)}", st["muted"]),
        Spacer(1, 8),
    ]

    rows = [[
        format_day(t.date),
        Paragraph(escape(t.description.upper()), st["cell"]),
        "INGRESO" if t.type == TYPE_INCOME else "EGRESO",
        format_currency(Decimal(t.amount)),
    ] for t in transactions]
    story.append(_detail_table(
        ["FECHA", "DETALLE", "TIPO", "MONTO"], rows,
        [30 * mm, 82 * mm, 30 * mm, 40 * mm],
        [("ALIGN", (0, 1), (0, -1), "CENTER"),
         ("ALIGN", (2, 1), (2, -1), "CENTER"),
         ("ALIGN", (3, 1), (3, -1), "RIGHT"),
         ("FONTNAME", (3, 1), (3, -1), "Helvetica-Bold")],
    ))
    story.append(Spacer(1, 12))

    box = Table([
        ["RESUMEN FINANCIERO", ""],
        ["Total Ingresos:", format_currency(summary.total_income)],
        ["Total Egresos:", format_currency(summary.total_expenses)],
        ["SALDO NETO:", format_currency(summary.balance)],
    ], colWidths=[40 * mm, 36 * mm], hAlign="RIGHT")
    box.setStyle(TableStyle([
        ("LINEABOVE", (0, 0), (-1, 0), 0.5, DARK),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 9),
        ("ALIGN", (1, 1), (1, -1), "RIGHT"),
        ("TEXTCOLOR", (1, 1), (1, 1), GREEN),
        ("TEXTCOLOR", (1, 2), (1, 2), RED),
        ("LINEABOVE", (0, 3), (-1, 3), 0.1, DARK),
        ("FONTNAME", (0, 3), (-1, 3), "Helvetica-Bold"),
        ("FONTSIZE", (0, 3), (-1, 3), 11),
        ("BACKGROUND", (1, 3), (1, 3), ACCENT),
    ]))
    story.append(box)
    return _build(story)


def render_inventory_report(period: Period, data: inventory.InventoryPeriod,
                            logo: Optional[str] = None, issued: Optional[date] = None) -> bytes:
    st = _styles()
    issued = issued or date.today()
    summary = inventory.summarize(data.initial_stock, data.movements)

    story = [
        _header(f"INVENTARIO {app_settings.INVENTORY_PRODUCT} - {app_settings.ORG_NAME}", [
            Paragraph("CONTROL DE STOCK DE PRODUCTO", st["sub"]),
            Paragraph(f"REPORTE MENSUAL: {period.label}", st["sub_bold"]),
        ], _decode_logo(logo), st),
        Spacer(1, 8),
        Paragraph(f"FECHA DE EMISIÓN: {issue_line(issued)}", st["period"]),
        Spacer(1, 8),
    ]

    rows = []
    colors_by_row = []
    for i, m in enumerate(data.movements, start=1):
        rows.append([
            format_day(m.date),
            Paragraph(escape(m.description.upper()), st["cell"]),
            "REGALÍA" if m.subtype == SUBTYPE_REGALIA else (m.invoice_number or "-"),
            "ENTRADA" if m.type == MOVE_IN else "SALIDA",
            str(m.units),
        ])
        colors_by_row.append(("TEXTCOLOR", (3, i), (3, i), GREEN if m.type == MOVE_IN else RED))
    story.append(_detail_table(
        ["FECHA", "DETALLE", "FACTURA/ORDEN", "TIPO", "UNIDADES"], rows,
        [28 * mm, 78 * mm, 32 * mm, 22 * mm, 22 * mm],
        [("ALIGN", (0, 1), (0, -1), "CENTER"),
         ("ALIGN", (2, 1), (-1, -1), "CENTER"),
         ("FONTNAME", (4, 1), (4, -1), "Helvetica-Bold")] + colors_by_row,
    ))
    story.append(Spacer(1, 10))

    box = Table([
        ["RESUMEN DE STOCK", ""],
        ["Stock Inicial:", str(summary.initial_stock)],
        ["Entradas Mes:", f"+{summary.total_in}"],
        ["Salidas Mes:", f"-{summary.total_out}"],
        [f"(Ventas: {summary.total_ventas} | Regalías: {summary.total_regalias})", ""],
        ["STOCK FINAL:", str(summary.current_stock)],
    ], colWidths=[45 * mm, 25 * mm], hAlign="RIGHT")
    box.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, -1), BOX),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 9),
        ("ALIGN", (1, 1), (1, -1), "RIGHT"),
        ("SPAN", (0, 4), (1, 4)),
        ("FONTSIZE", (0, 4), (-1, 4), 7.5),
        ("TEXTCOLOR", (0, 4), (-1, 4), colors.HexColor("#646464")),
        ("LINEABOVE", (0, 5), (-1, 5), 0.5, colors.HexColor("#C8C8C8")),
        ("FONTNAME", (0, 5), (-1, 5), "Helvetica-Bold"),
        ("FONTSIZE", (0, 5), (-1, 5), 10.5),
    ]))
    story.append(box)
    return _build(story)


# ------------------------------------------------------------------------------
# PDF-Export Routen
# ------------------------------------------------------------------------------
def _pdf_response(content: bytes, filename: str) -> Response:
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'inline; filename="{filename}"'}
    )


def _file_label(period: Period) -> str:
    return f"{MESES[period.month - 1].capitalize()}_{period.year}"


@router.get("/cash.pdf")
def cash_report_pdf(month: Optional[str] = None, year: Optional[str] = None, db: Session = Depends(get_db)):
    period = resolve_period(month, year)
    transactions = ledger.aggregate_period(db, period)
    logo = config_store.get_setting(db, config_store.LOGO_KEY)
    pdf = render_cash_report(period, transactions, logo=logo)
    return _pdf_response(pdf, f"Reporte_CajaChica_{_file_label(period)}.pdf")


@router.get("/inventory.pdf")
def inventory_report_pdf(month: Optional[str] = None, year: Optional[str] = None, db: Session = Depends(get_db)):
    period = resolve_period(month, year)
    data = inventory.aggregate_period(db, period)
    logo = config_store.get_setting(db, config_store.LOGO_KEY)
    pdf = render_inventory_report(period, data, logo=logo)
    product = app_settings.INVENTORY_PRODUCT.title().replace(" ", "")
    return _pdf_response(pdf, f"Inventario_{product}_{_file_label(period)}.pdf")
