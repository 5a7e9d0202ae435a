"""Printable order ticket (PDF) for the admin back-office."""

from html import escape
from io import BytesIO
from typing import Any, Dict

from reportlab.lib.pagesizes import A4
from reportlab.lib import colors
from reportlab.lib.units import inch
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.enums import TA_CENTER

from mascotas.models import Order
from mascotas.utils.formatters import currency_ar, date_ar, time_ar


def generate_order_ticket_pdf(order: Order, business_info: Dict[str, Any]) -> BytesIO:
    """
    Render an order as a printable ticket.

    Args:
        order: Persisted order
        business_info: name, address, email, phone of the store
    """
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        rightMargin=0.75*inch,
        leftMargin=0.75*inch,
        topMargin=0.75*inch,
        bottomMargin=0.75*inch
    )

    elements = []
    styles = getSampleStyleSheet()

    title_style = ParagraphStyle(
        'TicketTitle',
        parent=styles['Heading1'],
        fontSize=20,
        textColor=colors.HexColor('#2C3E50'),
        spaceAfter=8,
        alignment=TA_CENTER,
        fontName='Helvetica-Bold'
    )
    header_style = ParagraphStyle(
        'TicketHeader',
        parent=styles['Normal'],
        fontSize=10,
        textColor=colors.HexColor('#7F8C8D'),
        alignment=TA_CENTER,
        spaceAfter=4
    )

    # 1. Store header
    elements.append(Paragraph(escape(business_info.get("name", "").upper()), title_style))
    for key in ('address', 'email'):
        if business_info.get(key):
            elements.append(Paragraph(business_info[key], header_style))
    if business_info.get('phone'):
        elements.append(Paragraph(f"TEL: {business_info['phone']}", header_style))
    elements.append(Spacer(1, 0.25*inch))

    # 2. Order metadata
    info_data = [
        ['FECHA:', date_ar(order.created_at)],
        ['HORA:', time_ar(order.created_at)],
        ['CLIENTE:', order.shipping.name],
        ['MÉTODO:', order.payment_label],
        ['ESTADO:', order.status.label],
    ]
    info_table = Table(info_data, colWidths=[1.5*inch, 4*inch])
    info_table.setStyle(TableStyle([
        ('ALIGN', (0, 0), (0, -1), 'RIGHT'),
        ('ALIGN', (1, 0), (1, -1), 'LEFT'),
        ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, -1), 10),
        ('TEXTCOLOR', (0, 0), (-1, -1), colors.HexColor('#34495E')),
    ]))
    elements.append(info_table)
    elements.append(Spacer(1, 0.25*inch))

    # 3. Items
    table_data = [['Cant', 'Descripción', 'Total']]
    for item in order.items:
        table_data.append([str(item.quantity), item.name, currency_ar(item.line_total)])

    items_table = Table(table_data, colWidths=[0.8*inch, 4.4*inch, 1.5*inch])
    items_table.setStyle(TableStyle([
        ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor('#3498DB')),
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('BOTTOMPADDING', (0, 0), (-1, 0), 10),
        ('ALIGN', (0, 0), (0, -1), 'CENTER'),
        ('ALIGN', (2, 0), (2, -1), 'RIGHT'),
        ('GRID', (0, 0), (-1, -1), 0.5, colors.HexColor('#BDC3C7')),
        ('ROWBACKGROUNDS', (0, 1), (-1, -1), [colors.white, colors.HexColor('#ECF0F1')]),
    ]))
    elements.append(items_table)
    elements.append(Spacer(1, 0.2*inch))

    # 4. Totals
    totals_data = [['Subtotal:', currency_ar(order.subtotal)]]
    if order.discount_value > 0:
        totals_data.append([f"Desc. ({order.discount_code or ''}):", f"-{currency_ar(order.discount_value)}"])
    if order.surcharge > 0:
        totals_data.append(['Recargo:', f"+{currency_ar(order.surcharge)}"])
    totals_data.append(['TOTAL:', f"{currency_ar(order.total)} ARS"])

    totals_table = Table(totals_data, colWidths=[5.2*inch, 1.5*inch])
    totals_table.setStyle(TableStyle([
        ('ALIGN', (0, 0), (-1, -1), 'RIGHT'),
        ('FONTSIZE', (0, 0), (-1, -1), 10),
        ('FONTNAME', (0, -1), (-1, -1), 'Helvetica-Bold'),
        ('FONTSIZE', (0, -1), (-1, -1), 13),
        ('TEXTCOLOR', (0, -1), (-1, -1), colors.HexColor('#27AE60')),
        ('LINEABOVE', (0, -1), (-1, -1), 1, colors.HexColor('#27AE60')),
    ]))
    elements.append(totals_table)
    elements.append(Spacer(1, 0.4*inch))

    # 5. Footer
    footer_style = ParagraphStyle('Footer', parent=styles['Normal'], fontSize=9, textColor=colors.HexColor('#95A5A6'), alignment=TA_CENTER)
    footer_text = "<b>¡Gracias por su compra!</b><br/>Los cambios se realizan con este ticket."
    if order.observations:
        footer_text += f"<br/><br/><b>Observaciones:</b> {escape(order.observations)}"
    footer_text += f"<br/><br/>{order.short_id}"
    elements.append(Paragraph(footer_text, footer_style))

    doc.build(elements)
    buffer.seek(0)
    return buffer
