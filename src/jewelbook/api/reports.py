"""
REPORTS API ENDPOINTS
"""

import io
from datetime import date, timedelta
from fastapi import APIRouter, HTTPException, Depends, Query
from fastapi.responses import StreamingResponse
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer
from typing import Dict, Any, Optional, Tuple
import logging

from jewelbook.core import config
from jewelbook.core.auth import require_permission
from jewelbook.repositories.report_repo import get_report_repository
from jewelbook.utils.validators import parse_date, validate_date_range

router = APIRouter(prefix="/reports", tags=["reports"])
logger = logging.getLogger(__name__)

ACCENT_COLOR = colors.HexColor('#b8860b')


def _format_currency(value):
    try:
        return f"{config.CURRENCY_CODE} {float(value):,.2f}"
    except (TypeError, ValueError):
        return f"{config.CURRENCY_CODE} {value}"


def _resolve_range(from_date: Optional[str], to_date: Optional[str]) -> Tuple[str, str]:
    """Default window is the last REPORT_DEFAULT_DAYS days ending today."""
    to_date = parse_date(to_date, "to_date") if to_date else date.today().isoformat()
    if from_date:
        from_date = parse_date(from_date, "from_date")
    else:
        from_date = (date.fromisoformat(to_date) - timedelta(days=config.REPORT_DEFAULT_DAYS)).isoformat()
    validate_date_range(from_date, to_date)
    return from_date, to_date


def _build_summary(from_date: str, to_date: str) -> Dict[str, Any]:
    repo = get_report_repository()
    sales = repo.get_sales_totals(from_date, to_date)
    expenses = repo.get_expense_totals(from_date, to_date)
    sales = {key: round(value, 2) if isinstance(value, float) else value for key, value in sales.items()}
    expenses = {key: round(value, 2) for key, value in expenses.items()}
    return {
        "from_date": from_date,
        "to_date": to_date,
        "sales": sales,
        "expenses": expenses,
        "net_profit": round(sales["profit"] - expenses["total"], 2),
    }


def _draw_header_footer(canvas, doc, shop_name, title, date_range):
    width, height = A4

    canvas.saveState()
    canvas.setFont('Helvetica-Bold', 14)
    canvas.drawCentredString(width / 2.0, height - 36, shop_name)
    canvas.setFont('Helvetica', 10)
    canvas.drawCentredString(width / 2.0, height - 52, title)
    if date_range:
        canvas.setFont('Helvetica', 8)
        canvas.drawCentredString(width / 2.0, height - 66, date_range)

    canvas.setFont('Helvetica', 8)
    canvas.drawRightString(width - 30, 20, f"Page {doc.page}")
    canvas.restoreState()


@router.get("/tables/{table_name}", dependencies=[Depends(require_permission("reports.view"))])
async def table_report(
    table_name: str,
    from_date: Optional[str] = Query(None),
    to_date: Optional[str] = Query(None)
):
    """Rows of a log table within a date range."""
    if table_name not in config.REPORT_TABLES:
        raise HTTPException(status_code=404, detail=f"Unknown report table: {table_name}")
    try:
        from_date, to_date = _resolve_range(from_date, to_date)
        rows = get_report_repository().fetch_table(table_name, from_date, to_date)
        return {
            "success": True,
            "table": table_name,
            "from_date": from_date,
            "to_date": to_date,
            "rows": rows,
            "total": len(rows)
        }
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to load {table_name} report: {e}")
        raise HTTPException(status_code=500, detail="Failed to load report")


@router.get("/summary", dependencies=[Depends(require_permission("reports.view"))])
async def summary_report(
    from_date: Optional[str] = Query(None),
    to_date: Optional[str] = Query(None)
):
    """Sales, expenses and net profit over a date range."""
    try:
        from_date, to_date = _resolve_range(from_date, to_date)
        return {"success": True, "summary": _build_summary(from_date, to_date)}
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to build summary report: {e}")
        raise HTTPException(status_code=500, detail="Failed to build summary report")


@router.get("/daily", dependencies=[Depends(require_permission("reports.view"))])
async def daily_report(
    from_date: Optional[str] = Query(None),
    to_date: Optional[str] = Query(None)
):
    """Per-day sales and expense totals."""
    try:
        from_date, to_date = _resolve_range(from_date, to_date)
        days = get_report_repository().get_daily_breakdown(from_date, to_date)
        return {"success": True, "from_date": from_date, "to_date": to_date, "days": days}
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to build daily report: {e}")
        raise HTTPException(status_code=500, detail="Failed to build daily report")


@router.get("/summary-pdf", dependencies=[Depends(require_permission("reports.view"))])
async def summary_pdf(
    from_date: Optional[str] = Query(None),
    to_date: Optional[str] = Query(None)
):
    """Summary report as a PDF download."""
    try:
        from_date, to_date = _resolve_range(from_date, to_date)
        summary = _build_summary(from_date, to_date)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    try:
        buffer = io.BytesIO()
        doc = SimpleDocTemplate(buffer, pagesize=A4, topMargin=90, bottomMargin=40)
        styles = getSampleStyleSheet()
        elements = [Spacer(1, 6)]

        sales = summary["sales"]
        expenses = summary["expenses"]

        rows = [
            ["Item", "Amount"],
            ["Sales count", str(sales["count"])],
            ["Revenue (selling cost)", _format_currency(sales["revenue"])],
            ["Purchase cost", _format_currency(sales["purchase_cost"])],
            ["Old material cost", _format_currency(sales["old_cost"])],
            ["Gross profit", _format_currency(sales["profit"])],
            ["Direct expenses", _format_currency(expenses["direct"])],
            ["Indirect expenses", _format_currency(expenses["indirect"])],
            ["Total expenses", _format_currency(expenses["total"])],
            ["Udhaar expenses", _format_currency(expenses["udhaar"])],
            ["Net profit", _format_currency(summary["net_profit"])],
        ]

        avail_width = A4[0] - doc.leftMargin - doc.rightMargin
        tbl = Table(rows, colWidths=[avail_width * 0.6, avail_width * 0.4], repeatRows=1)
        tbl.setStyle(TableStyle([
            ('BACKGROUND', (0, 0), (-1, 0), ACCENT_COLOR),
            ('TEXTCOLOR', (0, 0), (-1, 0), colors.white),
            ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
            ('FONTNAME', (0, -1), (-1, -1), 'Helvetica-Bold'),
            ('ALIGN', (1, 1), (1, -1), 'RIGHT'),
            ('GRID', (0, 0), (-1, -1), 0.5, colors.grey),
        ]))
        elements.append(tbl)
        elements.append(Spacer(1, 12))
        elements.append(Paragraph(
            f"Generated on {date.today().isoformat()}", styles['Normal']
        ))

        title = "Profit & Loss Summary"
        date_range = f"{from_date} to {to_date}"
        doc.build(
            elements,
            onFirstPage=lambda c, d: _draw_header_footer(c, d, config.SHOP_NAME, title, date_range),
            onLaterPages=lambda c, d: _draw_header_footer(c, d, config.SHOP_NAME, title, date_range)
        )
        buffer.seek(0)
        filename = f"summary_{from_date}_{to_date}.pdf"
        return StreamingResponse(
            buffer,
            media_type='application/pdf',
            headers={"Content-Disposition": f"attachment; filename={filename}"}
        )
    except Exception as e:
        logger.error(f"Failed to generate summary PDF: {e}")
        raise HTTPException(status_code=500, detail="Failed to generate summary PDF")
