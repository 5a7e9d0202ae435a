"""Currency and store settings provider."""

import logging
from decimal import Decimal
from typing import Any, Dict, Optional, Union

from mascotas.exceptions import BackendError
from mascotas.models import to_decimal
from mascotas.services.api_client import BackendClient
from mascotas.services.cache_service import CacheService
from mascotas.utils.formatters import currency_ar

logger = logging.getLogger(__name__)

SETTINGS_CACHE_MODULE = 'settings'

Number = Union[int, float, Decimal]


class CurrencyProvider:
    """
    Display currency and markup settings.

    Catalog prices are already loaded in ARS, so conversion is the identity
    (rate 1). Every displayed amount still goes through ``convert`` so a real
    rate can be plugged in later.
    """

    def __init__(
        self,
        client: Optional[BackendClient] = None,
        cache: Optional[CacheService] = None,
        default_percentage: Number = 10,
        settings_ttl: Optional[int] = None
    ):
        self.client = client
        self.cache = cache
        self.settings_ttl = settings_ttl
        self.exchange_rate = Decimal('1')
        self.suggested_price_percentage = to_decimal(default_percentage)

    def convert(self, amount: Number) -> Decimal:
        return to_decimal(amount) * self.exchange_rate

    def format(self, amount: Number) -> str:
        """Converted amount formatted as ARS, e.g. '$ 1.500'."""
        return currency_ar(self.convert(amount))

    def suggested_price(self, base_price: Number) -> Decimal:
        """Suggested retail price: wholesale price plus the configured markup."""
        return to_decimal(base_price) * (Decimal('1') + self.suggested_price_percentage / Decimal('100'))

    def _fetch_settings(self) -> Dict[str, Any]:
        response = self.client.get_settings()
        return response.get('data') or {}

    def refresh_settings(self) -> Decimal:
        """
        Load the markup percentage from the backend (cached).

        On failure the previous value is kept and the error is logged.
        """
        if self.client is None:
            return self.suggested_price_percentage

        try:
            if self.cache is not None:
                data = self.cache.memoize(SETTINGS_CACHE_MODULE, 'current', self._fetch_settings, self.settings_ttl)
            else:
                data = self._fetch_settings()
        except BackendError as e:
            logger.error(f"[SETTINGS] Error fetching settings: {e.message}")
            return self.suggested_price_percentage

        if data.get('suggestedPricePercentage') is not None:
            self.suggested_price_percentage = to_decimal(data['suggestedPricePercentage'])
        return self.suggested_price_percentage

    def update_settings(self, percentage: Number) -> Dict[str, Any]:
        """Persist a new markup percentage (admin) and drop the cached copy."""
        response = self.client.update_settings({'suggestedPricePercentage': float(percentage)})
        if self.cache is not None:
            self.cache.invalidate_module(SETTINGS_CACHE_MODULE)
        self.suggested_price_percentage = to_decimal(percentage)
        logger.info(f"[SETTINGS] Suggested price percentage set to {percentage}")
        return response

    def to_dict(self) -> Dict[str, Any]:
        return {
            'exchange_rate': str(self.exchange_rate),
            'suggested_price_percentage': str(self.suggested_price_percentage),
        }
