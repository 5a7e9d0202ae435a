"""WhatsApp order message builder (pre-filled chat link to the store)."""
from dataclasses import dataclass
from typing import Iterable, Optional
from urllib.parse import quote

from mascotas.models import CartLine, LineKind


@dataclass
class CheckoutData:
    """Validated checkout form contents."""
    name: str
    phone: str
    city: str
    payment_method: str
    email: Optional[str] = None
    observations: str = ''


def build_whatsapp_message(
    checkout: CheckoutData,
    lines: Iterable[CartLine],
    total_text: str,
    store_name: str,
    discount_code: Optional[str] = None,
    free_shipping: bool = False
) -> str:
    """Plain-text order summary, using WhatsApp *bold* / _italic_ markup."""
    message = f"*NUEVO PEDIDO - {store_name}*\n\n"
    message += f"*Cliente:* {checkout.name}\n"
    message += f"*WhatsApp:* {checkout.phone}\n"
    message += f"*Ciudad/Zona:* {checkout.city}\n"
    message += f"*Pago:* {checkout.payment_method}\n"

    if checkout.observations:
        message += f"*Observaciones:* {checkout.observations}\n"

    message += "\n*Detalle del pedido:*\n"
    for line in lines:
        if line.kind is LineKind.COMBO:
            message += f"- {line.name} x{line.quantity} (Combo)\n"
        else:
            message += f"- {line.name} x{line.quantity} (Producto - {line.detail()})\n"

    if discount_code:
        message += f"\n*Cupón:* {discount_code}"
        if free_shipping:
            message += " (envío gratis)"
        message += "\n"

    message += f"\n*TOTAL:* {total_text}\n\n"
    message += "_Coordinar envío y pago por aquí._"
    return message


def build_whatsapp_url(message: str, phone: str, base_url: str = 'https://wa.me') -> str:
    """Chat link with the message URL-escaped like encodeURIComponent."""
    encoded = quote(message, safe="-_.!~*'()")
    return f"{base_url.rstrip('/')}/{phone}?text={encoded}"
