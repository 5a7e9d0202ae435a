"""Discount Service - coupon validation through the backend."""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

from mascotas.exceptions import BackendError
from mascotas.models import AppliedDiscount
from mascotas.services.api_client import BackendClient
from mascotas.services.cart_service import CartStore

logger = logging.getLogger(__name__)

DEFAULT_REJECTION = 'Cupón inválido'


@dataclass
class CouponFeedback:
    """Outcome of the last coupon attempt, shown until it expires."""
    status: str  # 'success' | 'error'
    message: str
    expires_at: float

    def is_active(self, now: float) -> bool:
        return now < self.expires_at


@dataclass
class DiscountResult:
    success: bool
    discount: Optional[AppliedDiscount] = None
    message: Optional[str] = None


class DiscountService:
    """
    Validates coupon codes against the backend and applies the result.

    The backend is the only authority: invalid code, wrong audience
    (mayorista/minorista), subtotal under the minimum and exhausted usage all
    come back as one rejection message, shown verbatim.
    """

    def __init__(
        self,
        client: BackendClient,
        feedback_seconds: float = 3,
        clock: Callable[[], float] = time.monotonic
    ):
        self.client = client
        self.feedback_seconds = feedback_seconds
        self.clock = clock
        self._feedback: Optional[CouponFeedback] = None

    @property
    def feedback(self) -> Optional[CouponFeedback]:
        """Current feedback; cleared automatically once expired."""
        if self._feedback and not self._feedback.is_active(self.clock()):
            self._feedback = None
        return self._feedback

    def _set_feedback(self, status: str, message: str) -> None:
        self._feedback = CouponFeedback(status, message, self.clock() + self.feedback_seconds)

    def validate(self, store: CartStore, code: str, is_identified: bool) -> DiscountResult:
        """
        Validate ``code`` for the cart subtotal and caller class.

        On success the discount replaces any applied one. On failure the cart
        is left untouched and the rejection text is returned.
        """
        code = (code or '').strip().upper()
        if not code:
            return DiscountResult(False, message='Ingresá un código de cupón')

        try:
            response = self.client.validate_discount(code, float(store.cart_total), is_identified)
        except BackendError as e:
            logger.info(f"[DISCOUNT] Coupon {code} rejected: {e.message}")
            message = e.message if e.status_code < 500 else DEFAULT_REJECTION
            self._set_feedback('error', message)
            return DiscountResult(False, message=message)

        if not response.get('success') or not response.get('data'):
            message = response.get('message') or DEFAULT_REJECTION
            logger.info(f"[DISCOUNT] Coupon {code} rejected: {message}")
            self._set_feedback('error', message)
            return DiscountResult(False, message=message)

        try:
            discount = AppliedDiscount.from_api(response['data'])
        except (KeyError, ValueError, ArithmeticError) as e:
            logger.error(f"[DISCOUNT] Malformed descriptor for {code}: {e}")
            self._set_feedback('error', DEFAULT_REJECTION)
            return DiscountResult(False, message=DEFAULT_REJECTION)

        store.apply_discount(discount)
        logger.info(f"[DISCOUNT] Applied {discount.code} ({discount.kind.value} {discount.value})")
        message = f'{discount.code} aplicado'
        self._set_feedback('success', message)
        return DiscountResult(True, discount=discount, message=message)

    def remove_discount(self, store: CartStore) -> None:
        """Detach the coupon; a no-op when none is applied."""
        store.remove_discount()
