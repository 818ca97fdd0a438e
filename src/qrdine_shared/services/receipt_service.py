"""
Printable receipt ("phiếu tạm tính") for one order.

The same receipt data feeds three renderings: the 80 mm HTML page
(``receipt.html`` template in the admin app), a fixed-width text block for
plain thermal printers, and a ReportLab PDF.
"""

from __future__ import annotations

import io
import logging
from typing import Any
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import letter
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from qrdine_shared.datetime_utils import from_epoch_ms

logger = logging.getLogger(__name__)

# 80mm thermal printer width
TICKET_WIDTH = 80 * mm
TEXT_WIDTH = 42

RECEIPT_TITLE = "PHIẾU TẠM TÍNH"
RECEIPT_FOOTER = "Cảm ơn Quý khách. Hẹn gặp lại!"


def format_vnd(amount: int | float) -> str:
    """130000 -> '130.000đ'."""
    return f"{int(round(amount)):,}".replace(",", ".") + "đ"


def short_order_id(order_id: str) -> str:
    return order_id[-4:]


def format_receipt_time(created_at_ms: int, timezone_name: str) -> str:
    moment = from_epoch_ms(created_at_ms, timezone_name)
    return (
        f"{moment.hour:02d}:{moment.minute:02d}:{moment.second:02d} "
        f"{moment.day}/{moment.month}/{moment.year}"
    )


def build_receipt(
    order: dict[str, Any], settings: dict[str, Any], timezone_name: str
) -> dict[str, Any]:
    """Everything a receipt rendering needs, already formatted."""
    lines = [
        {
            "name": item["name"],
            "note": item.get("note") or "",
            "quantity": item["quantity"],
            "lineTotal": item["price"] * item["quantity"],
            "lineTotalDisplay": format_vnd(item["price"] * item["quantity"]),
        }
        for item in order.get("items", [])
    ]
    return {
        "title": RECEIPT_TITLE,
        "footer": RECEIPT_FOOTER,
        "restaurantName": settings.get("restaurantName", ""),
        "address": settings.get("address", ""),
        "phone": settings.get("phone", ""),
        "orderId": order["id"],
        "shortId": short_order_id(order["id"]),
        "tableId": order["tableId"],
        "customerName": order["customerName"],
        "createdAt": format_receipt_time(order["createdAt"], timezone_name),
        "lines": lines,
        "totalAmount": order["totalAmount"],
        "totalDisplay": format_vnd(order["totalAmount"]),
    }


def _row(left: str, right: str, width: int = TEXT_WIDTH) -> str:
    space = max(width - len(left) - len(right), 1)
    return f"{left}{' ' * space}{right}"


def render_receipt_text(receipt: dict[str, Any], width: int = TEXT_WIDTH) -> str:
    """Fixed-width rendering for plain-text printers."""
    rule = "-" * width
    out = [
        receipt["restaurantName"].upper().center(width),
        receipt["address"].center(width),
        f"Hotline: {receipt['phone']}".center(width),
        "=" * width,
        receipt["title"].center(width),
        f"Mã: #{receipt['shortId']} | Bàn: {receipt['tableId']}",
        f"Khách: {receipt['customerName']}",
        f"Ngày: {receipt['createdAt']}",
        rule,
        _row("Tên món", "SL    T.Tiền", width),
        rule,
    ]
    for line in receipt["lines"]:
        qty_total = f"{line['quantity']:>2}  {line['lineTotalDisplay']:>10}"
        name_room = width - len(qty_total) - 1
        out.append(_row(line["name"][:name_room], qty_total, width))
        if line["note"]:
            out.append(f"  * {line['note']}")
    out.extend(
        [
            rule,
            _row("Tổng cộng:", receipt["totalDisplay"], width),
            _row("THÀNH TIỀN:", receipt["totalDisplay"], width),
            "=" * width,
            receipt["footer"].center(width),
        ]
    )
    return "\n".join(out) + "\n"


class ReceiptPDFService:
    """Service for generating PDF receipts."""

    def __init__(self):
        self.styles = getSampleStyleSheet()
        self._setup_styles()

    def _setup_styles(self):
        self.styles.add(
            ParagraphStyle(
                name="ReceiptHeader",
                parent=self.styles["Heading1"],
                fontSize=14,
                alignment=1,
                spaceAfter=6,
            )
        )
        self.styles.add(
            ParagraphStyle(
                name="ReceiptSubheader",
                parent=self.styles["Normal"],
                fontSize=9,
                alignment=1,
                spaceAfter=3,
            )
        )
        self.styles.add(
            ParagraphStyle(name="ReceiptItem", parent=self.styles["Normal"], fontSize=9)
        )
        self.styles.add(
            ParagraphStyle(
                name="ReceiptNote",
                parent=self.styles["Normal"],
                fontSize=8,
                leftIndent=6,
                textColor=colors.gray,
            )
        )
        self.styles.add(
            ParagraphStyle(
                name="ReceiptFooter",
                parent=self.styles["Normal"],
                fontSize=8,
                alignment=1,
                textColor=colors.gray,
            )
        )

    def generate_pdf(self, receipt: dict[str, Any]) -> bytes:
        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=(TICKET_WIDTH, letter[1]),
            leftMargin=5 * mm,
            rightMargin=5 * mm,
            topMargin=10 * mm,
            bottomMargin=10 * mm,
            title=f"Hóa đơn - #{receipt['shortId']}",
        )

        elements = [
            Paragraph(escape(receipt["restaurantName"]), self.styles["ReceiptHeader"]),
            Paragraph(escape(receipt["address"]), self.styles["ReceiptSubheader"]),
            Paragraph(f"Hotline: {escape(receipt['phone'])}", self.styles["ReceiptSubheader"]),
            Spacer(1, 3 * mm),
            Paragraph(f"<b>{escape(receipt['title'])}</b>", self.styles["ReceiptSubheader"]),
            Paragraph(
                f"Mã: <b>#{escape(receipt['shortId'])}</b> | Bàn: <b>{escape(receipt['tableId'])}</b>",
                self.styles["ReceiptSubheader"],
            ),
            Paragraph(f"Khách: {escape(receipt['customerName'])}", self.styles["ReceiptSubheader"]),
            Paragraph(f"Ngày: {escape(receipt['createdAt'])}", self.styles["ReceiptSubheader"]),
            Spacer(1, 2 * mm),
            self._create_separator(),
        ]

        items_data = [["Tên món", "SL", "T.Tiền"]]
        for line in receipt["lines"]:
            label = escape(line["name"])
            if line["note"]:
                label += f"<br/><font size=7 color='gray'>* {escape(line['note'])}</font>"
            items_data.append(
                [
                    Paragraph(label, self.styles["ReceiptItem"]),
                    str(line["quantity"]),
                    line["lineTotalDisplay"],
                ]
            )
        items_table = Table(items_data, colWidths=[40 * mm, 8 * mm, 22 * mm])
        items_table.setStyle(
            TableStyle(
                [
                    ("FONTSIZE", (0, 0), (-1, -1), 9),
                    ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                    ("LINEBELOW", (0, 0), (-1, 0), 0.5, colors.black),
                    ("ALIGN", (1, 0), (1, -1), "CENTER"),
                    ("ALIGN", (2, 0), (2, -1), "RIGHT"),
                    ("VALIGN", (0, 0), (-1, -1), "TOP"),
                    ("LEFTPADDING", (0, 0), (0, -1), 0),
                    ("RIGHTPADDING", (2, 0), (2, -1), 0),
                ]
            )
        )
        elements.append(items_table)
        elements.append(Spacer(1, 2 * mm))

        totals_table = Table(
            [
                ["Tổng cộng:", receipt["totalDisplay"]],
                ["THÀNH TIỀN:", receipt["totalDisplay"]],
            ],
            colWidths=[40 * mm, 30 * mm],
        )
        totals_table.setStyle(
            TableStyle(
                [
                    ("FONTSIZE", (0, 0), (-1, -1), 10),
                    ("FONTNAME", (0, 1), (-1, 1), "Helvetica-Bold"),
                    ("FONTSIZE", (0, 1), (-1, 1), 12),
                    ("LINEABOVE", (0, 1), (-1, 1), 1, colors.black),
                    ("ALIGN", (1, 0), (1, -1), "RIGHT"),
                    ("LEFTPADDING", (0, 0), (0, -1), 0),
                    ("RIGHTPADDING", (1, 0), (1, -1), 0),
                ]
            )
        )
        elements.append(totals_table)

        elements.append(Spacer(1, 6 * mm))
        elements.append(self._create_separator())
        elements.append(Paragraph(escape(receipt["footer"]), self.styles["ReceiptFooter"]))

        doc.build(elements)
        pdf_bytes = buffer.getvalue()
        buffer.close()

        logger.info(f"Generated PDF receipt for order {receipt['orderId']} ({len(pdf_bytes)} bytes)")
        return pdf_bytes

    def _create_separator(self) -> Table:
        separator = Table([["-" * 40]], colWidths=[70 * mm])
        separator.setStyle(
            TableStyle(
                [
                    ("FONTSIZE", (0, 0), (-1, -1), 8),
                    ("ALIGN", (0, 0), (-1, -1), "CENTER"),
                    ("TEXTCOLOR", (0, 0), (-1, -1), colors.gray),
                ]
            )
        )
        return separator
