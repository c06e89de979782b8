import logging
import io
from typing import List
from xml.sax.saxutils import escape

# ReportLab Imports
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import mm
from reportlab.lib.pagesizes import letter
from reportlab.lib import colors

from cotizador.core.config import settings
from cotizador.core.schemas import UNIT_LABELS
from cotizador.quotes.domain.entities import LineItem, QuoteInfo, format_rut
from cotizador.pdf.domain.generator import AbstractQuoteDocumentRenderer
from cotizador.pdf.domain.exceptions import PDFGenerationException
from cotizador.pdf.utils import format_clp, delivery_label

logger = logging.getLogger(__name__)

PRIMARY_COLOR = colors.HexColor("#0f172a")
ACCENT_COLOR = colors.HexColor("#2563eb")
LIGHT_GREY = colors.HexColor("#f1f5f9")


def _p(text, style) -> Paragraph:
    return Paragraph(escape(str(text or "")), style)


class ReportLabQuoteRenderer(AbstractQuoteDocumentRenderer):
    """Implémentation du rendu de devis utilisant ReportLab."""

    def __init__(self):
        logger.info("[ReportLabQuoteRenderer] Initialisé.")

    async def render_quote_document(self, line_items: List[LineItem], info: QuoteInfo) -> bytes:
        logger.info(f"[PDFGen] Génération PDF devis {info.quote_number} ({len(line_items)} lignes)")

        buffer = io.BytesIO()
        # Sortie déterministe: pas d'horodatage ni d'identifiant aléatoire dans le fichier
        doc = SimpleDocTemplate(
            buffer, pagesize=letter, invariant=1,
            leftMargin=18 * mm, rightMargin=18 * mm, topMargin=12 * mm, bottomMargin=30 * mm,
            title=f"Cotización {info.quote_number}",
        )
        styles = getSampleStyleSheet()
        normal_style = styles["Normal"]
        small_style = ParagraphStyle(name="Small", parent=normal_style, fontSize=8, leading=10)
        bold_style = ParagraphStyle(name="Bold", parent=normal_style, fontName="Helvetica-Bold")
        header_white = ParagraphStyle(name="HeaderWhite", parent=normal_style, textColor=colors.white)
        header_title = ParagraphStyle(
            name="HeaderTitle", parent=bold_style, fontSize=16, leading=20, textColor=colors.white
        )
        header_company = ParagraphStyle(
            name="HeaderCompany", parent=bold_style, fontSize=22, leading=26, textColor=colors.white
        )
        header_number = ParagraphStyle(name="HeaderNumber", parent=bold_style, fontSize=11, textColor=ACCENT_COLOR)
        section_style = ParagraphStyle(name="Section", parent=bold_style, fontSize=10, textColor=ACCENT_COLOR)
        footer_style = ParagraphStyle(name="Footer", fontSize=7, leading=9, textColor=colors.gray, alignment=1)

        elements = []

        # --- 1. En-tête sombre ---
        header = Table(
            [[
                [_p(settings.COMPANY_NAME, header_company), _p(settings.COMPANY_TAGLINE, header_white)],
                [
                    _p("COTIZACIÓN COMERCIAL", header_title),
                    _p(info.quote_number, header_number),
                    _p(f"Fecha: {info.issue_date.strftime('%d/%m/%Y')}", header_white),
                ],
            ]],
            colWidths=[95 * mm, 85 * mm],
        )
        header.setStyle(TableStyle([
            ("BACKGROUND", (0, 0), (-1, -1), PRIMARY_COLOR),
            ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
            ("LINEBELOW", (0, 0), (-1, -1), 3, ACCENT_COLOR),
            ("TOPPADDING", (0, 0), (-1, -1), 10),
            ("BOTTOMPADDING", (0, 0), (-1, -1), 10),
            ("LEFTPADDING", (0, 0), (-1, -1), 10),
        ]))
        elements.append(header)
        elements.append(Spacer(1, 6 * mm))

        # --- 2. Client / Contact commercial ---
        def field_rows(fields):
            return [[_p(label, bold_style), _p(value or "N/A", normal_style)] for label, value in fields]

        customer_table = Table(
            [[_p("DATOS DEL CLIENTE", section_style), ""]] + field_rows([
                ("CONTACTO:", info.customer_name),
                ("EMPRESA:", info.customer_company),
                ("RUT:", format_rut(info.customer_rut)),
                ("GIRO:", info.customer_giro),
                ("EMAIL:", info.customer_email),
                ("TELÉFONO:", info.customer_phone),
            ]),
            colWidths=[25 * mm, 60 * mm],
        )
        contact_table = Table(
            [[_p("CONTACTO COMERCIAL", section_style), ""]] + field_rows([
                ("EJECUTIVO:", settings.SALES_EXECUTIVE),
                ("EMAIL:", settings.SALES_EMAIL),
                ("TELÉFONO:", settings.SALES_PHONE),
                ("WEB:", settings.COMPANY_WEBSITE),
            ]),
            colWidths=[25 * mm, 60 * mm],
        )
        for block in (customer_table, contact_table):
            block.setStyle(TableStyle([
                ("SPAN", (0, 0), (-1, 0)),
                ("LINEBELOW", (0, 0), (-1, 0), 1, ACCENT_COLOR),
                ("FONTSIZE", (0, 1), (-1, -1), 9),
                ("TOPPADDING", (0, 0), (-1, -1), 1),
                ("BOTTOMPADDING", (0, 0), (-1, -1), 1),
            ]))
        info_row = Table([[customer_table, contact_table]], colWidths=[90 * mm, 90 * mm])
        info_row.setStyle(TableStyle([("VALIGN", (0, 0), (-1, -1), "TOP")]))
        elements.append(info_row)
        elements.append(Spacer(1, 6 * mm))

        # --- 3. Tableau des lignes ---
        head_style = ParagraphStyle(name="HeadCell", parent=bold_style, textColor=colors.white, fontSize=9)
        table_data = [[
            _p("#", head_style), _p("Código / Descripción", head_style), _p("Marca", head_style),
            _p("Cant.", head_style), _p("Precio Unit.", head_style), _p("Subtotal", head_style),
        ]]
        for index, item in enumerate(line_items, start=1):
            code = item.sku or item.name
            description = item.description or item.name
            content = (
                f"<b>Código: {escape(code)}</b><br/>{escape(item.name)}"
                + (f"<br/>{escape(description)}" if description != item.name else "")
                + f"<br/><i>[Entrega: {delivery_label(item)}]</i>"
            )
            table_data.append([
                str(index),
                Paragraph(content, small_style),
                _p(item.brand, small_style),
                f"{item.quantity} {UNIT_LABELS.get(item.unit, item.unit.value)}",
                format_clp(item.net_price),
                format_clp(item.line_total),
            ])

        items_table = Table(
            table_data,
            colWidths=[8 * mm, 82 * mm, 22 * mm, 20 * mm, 24 * mm, 24 * mm],
            repeatRows=1,
        )
        items_table.setStyle(TableStyle([
            ("BACKGROUND", (0, 0), (-1, 0), PRIMARY_COLOR),
            ("TEXTCOLOR", (0, 0), (-1, 0), colors.whitesmoke),
            ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
            ("ALIGN", (0, 0), (0, -1), "CENTER"),
            ("ALIGN", (3, 1), (3, -1), "CENTER"),
            ("ALIGN", (4, 1), (-1, -1), "RIGHT"),
            ("FONTSIZE", (0, 1), (-1, -1), 8),
            ("GRID", (0, 0), (-1, -1), 0.5, colors.lightgrey),
            ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, LIGHT_GREY]),
        ]))
        elements.append(items_table)
        elements.append(Spacer(1, 6 * mm))

        # --- 4. Totaux (recalculés à partir des lignes) ---
        net_total = sum((item.line_total for item in line_items), 0)
        tax = net_total * info.iva_rate
        total = net_total + tax
        iva_percent = int(info.iva_rate * 100)
        totals_table = Table(
            [
                ["SUBTOTAL NETO:", format_clp(net_total)],
                [f"IVA ({iva_percent}%):", format_clp(tax)],
                ["TOTAL CLP:", format_clp(total)],
            ],
            colWidths=[40 * mm, 35 * mm],
            hAlign="RIGHT",
        )
        totals_table.setStyle(TableStyle([
            ("ALIGN", (1, 0), (1, -1), "RIGHT"),
            ("FONTNAME", (0, 0), (0, -1), "Helvetica-Bold"),
            ("FONTNAME", (1, 2), (1, 2), "Helvetica-Bold"),
            ("FONTSIZE", (0, 2), (-1, 2), 12),
            ("TEXTCOLOR", (0, 2), (0, 2), ACCENT_COLOR),
            ("BOX", (0, 0), (-1, -1), 0.5, colors.lightgrey),
            ("BACKGROUND", (0, 0), (-1, -1), colors.HexColor("#fcfcfc")),
            ("LINEABOVE", (0, 2), (-1, 2), 0.5, colors.lightgrey),
        ]))
        elements.append(totals_table)

        # --- Pied de page ---
        footer_lines = [f"<b>{escape(settings.COMPANY_NAME)} - {escape(settings.COMPANY_TAGLINE)}</b>"]
        if settings.COMPANY_LEGAL_NAME or settings.COMPANY_RUT:
            footer_lines.append(
                f"Razón Social: {escape(settings.COMPANY_LEGAL_NAME)} | RUT: {escape(settings.COMPANY_RUT)}"
            )
        if settings.COMPANY_ADDRESS:
            footer_lines.append(f"Domicilio: {escape(settings.COMPANY_ADDRESS)}")
        footer_lines.append(
            f"<i>Validez de la cotización: {settings.QUOTE_VALIDITY_DAYS} días corridos. "
            "Precios netos sujetos a IVA.</i>"
        )
        footer = Paragraph("<br/>".join(footer_lines), footer_style)

        def add_footer(canvas, doc):
            canvas.saveState()
            canvas.setStrokeColor(ACCENT_COLOR)
            canvas.line(doc.leftMargin, doc.bottomMargin - 4 * mm, doc.leftMargin + doc.width, doc.bottomMargin - 4 * mm)
            w, h = footer.wrap(doc.width, doc.bottomMargin)
            footer.drawOn(canvas, doc.leftMargin, doc.bottomMargin - 6 * mm - h)
            canvas.restoreState()

        # --- Génération du PDF dans le buffer ---
        try:
            doc.build(elements, onFirstPage=add_footer, onLaterPages=add_footer)
            pdf_bytes = buffer.getvalue()
            buffer.close()
            logger.info(f"[PDFGen] PDF devis {info.quote_number} généré en mémoire ({len(pdf_bytes)} bytes).")
            return pdf_bytes
        except Exception as e:
            logger.error(f"[PDFGen] Erreur ReportLab build() pour devis {info.quote_number}: {e}", exc_info=True)
            raise PDFGenerationException(f"Erreur lors de la construction du PDF: {e}", original_exception=e)
