"""
Human-readable order sheet (reportlab).

Renders the visible part of an Order-X PDF from the document tree:
- Header: seller sender line, buyer address block, meta (order no, date, currency)
- Item table: Pos | Bezeichnung | Menge | Einzelpreis | Gesamt
- Totals from the header summation, document notes
- Footer: seller address, contact and tax registrations
"""
from __future__ import annotations

from decimal import Decimal
from io import BytesIO
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import (
    BaseDocTemplate,
    Flowable,
    Frame,
    PageTemplate,
    Paragraph,
    Spacer,
    Table,
    TableStyle,
)

from orderx.base import OrderDocument, TradeParty

# ─── Colour palette ──────────────────────────────────────────────
CLR_BLACK = colors.black
CLR_GREY_MID = colors.HexColor("#d9d9d9")
CLR_GREY_DARK = colors.HexColor("#666666")
CLR_TABLE_HEADER_BG = colors.HexColor("#e8e8e8")

# ─── Page metrics ─────────────────────────────────────────────────
PAGE_W, PAGE_H = A4
MARGIN_LEFT = 20 * mm
MARGIN_RIGHT = 20 * mm
MARGIN_TOP = 5 * mm
MARGIN_BOTTOM = 30 * mm

CONTENT_W = PAGE_W - MARGIN_LEFT - MARGIN_RIGHT
HEADER_HEIGHT = 70 * mm

DOCUMENT_TITLES = {
    "220": "Bestellung",
    "230": "Bestelländerung",
    "231": "Bestellantwort",
}


def _styles():
    ss = getSampleStyleSheet()
    base = ParagraphStyle("Base", parent=ss["Normal"], fontName="Helvetica",
                          fontSize=9, leading=11, spaceAfter=0)
    return {
        "title": ParagraphStyle("DocTitle", parent=base, fontName="Helvetica-Bold",
                                fontSize=16, leading=19, spaceAfter=4),
        "normal": ParagraphStyle("Norm", parent=base, spaceAfter=2),
        "table_header": ParagraphStyle("TH", parent=base, fontName="Helvetica-Bold",
                                       fontSize=8.5, leading=10),
        "table_cell": ParagraphStyle("TC", parent=base, fontSize=8.5, leading=10),
        "table_cell_right": ParagraphStyle("TCR", parent=base, fontSize=8.5, leading=10, alignment=2),
        "right_bold": ParagraphStyle("RightBold", parent=base, fontName="Helvetica-Bold", alignment=2),
        "right": ParagraphStyle("Right", parent=base, alignment=2),
    }


class HLine(Flowable):
    """A thin horizontal line."""
    def __init__(self, width: float = CONTENT_W, thickness: float = 0.6, color=CLR_BLACK, space_after=4):
        super().__init__()
        self.width = width
        self.thickness = thickness
        self.color = color
        self.space_after = space_after
        self.height = self.thickness + self.space_after

    def draw(self):
        self.canv.saveState()
        self.canv.setStrokeColor(self.color)
        self.canv.setLineWidth(self.thickness)
        self.canv.line(0, self.space_after, self.width, self.space_after)
        self.canv.restoreState()


# ─── Formatting ──────────────────────────────────────────────────
def fmt_amount(value: Decimal | None, currency: str | None = None) -> str:
    """Format an amount German style, e.g. ``1.234,50 EUR``."""
    if value is None:
        return ""
    text = f"{value:,.2f}".replace(",", "X").replace(".", ",").replace("X", ".")
    return f"{text} {currency}" if currency else text


def fmt_quantity(value: Decimal) -> str:
    text = f"{value.normalize():f}"
    return text.replace(".", ",")


def _party_lines(party: TradeParty | None) -> list[str]:
    if party is None:
        return []
    lines = [party.name]
    a = party.postal_address
    if a is not None:
        lines += [line for line in (a.line_one, a.line_two, a.line_three) if line]
        city = " ".join(p for p in (a.postcode, a.city) if p)
        if city:
            lines.append(city)
        if a.country_id:
            lines.append(a.country_id)
    return lines


# ─── Page callbacks ──────────────────────────────────────────────
def _draw_header(canvas, doc, *, sender_lines: list[str], recipient_lines: list[str],
                 meta_lines: list[tuple[str, str]]):
    canvas.saveState()

    canvas.setFont("Helvetica", 6.5)
    canvas.setFillColor(CLR_GREY_DARK)
    y_sender = PAGE_H - MARGIN_TOP - 35 * mm
    canvas.drawString(MARGIN_LEFT, y_sender, " – ".join(sender_lines[:3]))

    canvas.setFillColor(CLR_BLACK)
    y_recip = y_sender - 14
    for i, line in enumerate(recipient_lines[:6]):
        canvas.setFont("Helvetica-Bold" if i == 0 else "Helvetica", 10)
        canvas.drawString(MARGIN_LEFT, y_recip - i * 13, line)

    canvas.setFont("Helvetica", 8.5)
    x_label = PAGE_W - MARGIN_RIGHT - 70 * mm
    x_value = PAGE_W - MARGIN_RIGHT - 32 * mm
    for i, (label, value) in enumerate(meta_lines[:6]):
        y = y_sender - 14 - i * 12
        canvas.drawString(x_label, y, label)
        canvas.drawString(x_value, y, value)

    canvas.restoreState()


def _draw_footer(canvas, doc, *, seller_lines: list[str], contact_lines: list[str]):
    canvas.saveState()

    y_line = MARGIN_BOTTOM - 2 * mm
    canvas.setStrokeColor(CLR_GREY_MID)
    canvas.setLineWidth(0.5)
    canvas.line(MARGIN_LEFT, y_line, PAGE_W - MARGIN_RIGHT, y_line)

    canvas.setFont("Helvetica", 6.5)
    canvas.setFillColor(CLR_GREY_DARK)
    col_w = CONTENT_W / 2
    for col, lines in enumerate((seller_lines[:4], contact_lines[:4])):
        for i, t in enumerate(lines):
            canvas.drawString(MARGIN_LEFT + col * col_w, y_line - 10 - i * 8.5, t)

    canvas.drawRightString(PAGE_W - MARGIN_RIGHT, 8 * mm, f"Seite {canvas.getPageNumber()}")
    canvas.restoreState()


def _build_doc(buf: BytesIO, title: str, author: str, on_page_callback):
    frame_top = MARGIN_TOP + HEADER_HEIGHT
    frame = Frame(
        MARGIN_LEFT, MARGIN_BOTTOM,
        CONTENT_W, PAGE_H - frame_top - MARGIN_BOTTOM,
        leftPadding=0, rightPadding=0, topPadding=0, bottomPadding=0,
        id="main",
    )
    return BaseDocTemplate(
        buf, pagesize=A4,
        leftMargin=MARGIN_LEFT, rightMargin=MARGIN_RIGHT,
        topMargin=MARGIN_TOP, bottomMargin=MARGIN_BOTTOM,
        title=title, author=author,
        pageTemplates=[PageTemplate(id="default", frames=[frame], onPage=on_page_callback)],
    )


# ─── Order sheet ─────────────────────────────────────────────────
def build_order_pdf(source) -> bytes:
    """Build the order sheet PDF for an ``OrderDocument`` or a builder holding one."""
    d: OrderDocument = source if isinstance(source, OrderDocument) else source.document
    info = d.document
    agreement = d.transaction.agreement
    settlement = d.transaction.settlement
    currency = settlement.order_currency_code

    seller = agreement.seller_party.first()
    buyer = agreement.buyer_party.first()
    seller_lines = _party_lines(seller)

    contact_lines: list[str] = []
    if seller is not None:
        contact = seller.contacts.first()
        if contact is not None:
            contact_lines += [c for c in (contact.person_name, contact.telephone, contact.email) if c]
        for reg in seller.tax_registrations:
            label = "USt-IdNr" if reg.id.scheme_id == "VA" else "St.-Nr."
            contact_lines.append(f"{label}: {reg.id.value}")

    meta_lines = [("Bestell-Nr.:", info.id or "")]
    if info.issue_date is not None:
        meta_lines.append(("Datum:", info.issue_date.strftime("%d.%m.%Y")))
    if agreement.buyer_reference:
        meta_lines.append(("Ihr Zeichen:", agreement.buyer_reference))
    if currency:
        meta_lines.append(("Währung:", currency))

    def on_page(canvas, doc):
        _draw_header(canvas, doc, sender_lines=seller_lines,
                     recipient_lines=_party_lines(buyer), meta_lines=meta_lines)
        _draw_footer(canvas, doc, seller_lines=seller_lines, contact_lines=contact_lines)

    title = info.name or DOCUMENT_TITLES.get(info.type_code or "", "Bestellung")
    buf = BytesIO()
    doc = _build_doc(buf, title=title, author=seller.name if seller else "", on_page_callback=on_page)
    styles = _styles()
    cw = CONTENT_W

    story: list = [Paragraph(escape(title), styles["title"]), Spacer(1, 10)]

    # ── Item table ──
    col_widths = [28, cw * 0.46, 50, 60, cw - 28 - cw * 0.46 - 110]
    table_data = [[
        Paragraph("Pos", styles["table_header"]),
        Paragraph("Bezeichnung", styles["table_header"]),
        Paragraph("Menge", styles["table_header"]),
        Paragraph("Einzelpreis", styles["table_header"]),
        Paragraph("Gesamt", styles["table_header"]),
    ]]
    for item in d.transaction.line_items:
        product = item.product
        name = escape(product.name or "") if product else ""
        if product is not None and product.description:
            name += f"<br/><font size='7.5' color='#666666'>{escape(product.description)}</font>"
        qty = item.delivery.requested_quantity
        qty_text = ""
        if qty is not None:
            qty_text = " ".join(p for p in (fmt_quantity(qty.value), qty.unit_code) if p)
        price = item.agreement.net_price
        summation = item.settlement.monetary_summation
        table_data.append([
            Paragraph(escape(item.line_id), styles["table_cell"]),
            Paragraph(name, styles["table_cell"]),
            Paragraph(qty_text, styles["table_cell_right"]),
            Paragraph(fmt_amount(price.charge_amount if price else None), styles["table_cell_right"]),
            Paragraph(fmt_amount(summation.line_total_amount if summation else None),
                      styles["table_cell_right"]),
        ])

    table = Table(table_data, colWidths=col_widths, hAlign="LEFT", repeatRows=1)
    table.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), CLR_TABLE_HEADER_BG),
        ("LINEBELOW", (0, 0), (-1, 0), 0.8, CLR_BLACK),
        ("GRID", (0, 0), (-1, -1), 0.3, colors.HexColor("#cccccc")),
        ("BOX", (0, 0), (-1, -1), 0.6, CLR_BLACK),
        ("TOPPADDING", (0, 0), (-1, -1), 3),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 3),
        ("LEFTPADDING", (0, 0), (-1, -1), 4),
        ("RIGHTPADDING", (0, 0), (-1, -1), 4),
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
    ]))
    story.append(table)
    story.append(Spacer(1, 8))

    # ── Totals ──
    s = settlement.monetary_summation
    if s is not None:
        rows = []
        if s.line_total_amount is not None:
            rows.append(("Summe Positionen", s.line_total_amount, False))
        if s.tax_basis_total_amount is not None:
            rows.append(("Nettobetrag", s.tax_basis_total_amount, False))
        for amount in s.tax_total_amounts:
            rows.append(("Umsatzsteuer", amount.value, False))
        rows.append(("Gesamtbetrag", s.grand_total_amount, True))
        totals = Table(
            [[Paragraph(label, styles["right_bold" if bold else "right"]),
              Paragraph(fmt_amount(value, currency), styles["right_bold" if bold else "right"])]
             for label, value, bold in rows],
            colWidths=[cw - 90, 90], hAlign="LEFT",
        )
        totals.setStyle(TableStyle([
            ("LEFTPADDING", (0, 0), (-1, -1), 0),
            ("RIGHTPADDING", (0, 0), (-1, -1), 4),
            ("LINEABOVE", (0, -1), (-1, -1), 0.8, CLR_BLACK),
        ]))
        story.append(totals)
        story.append(Spacer(1, 10))

    # ── Notes ──
    if info.notes:
        story.append(HLine(width=cw, thickness=0.4, color=CLR_GREY_MID))
        for note in info.notes:
            if note.content:
                story.append(Paragraph(escape(note.content), styles["normal"]))

    doc.build(story)
    return buf.getvalue()
