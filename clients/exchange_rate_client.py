"""
USD to EUR exchange rate source.

Display-only: the overview must always have a usable rate, so every failure
falls back to a fixed rate instead of raising. Successful lookups are cached
in Valkey when a cache is configured.
"""

import logging
from decimal import Decimal, InvalidOperation

import redis
import requests

from clients.valkey_client import ValkeyClient

logger = logging.getLogger(__name__)

DEFAULT_RATES_URL = "https://api.exchangerate-api.com/v4/latest/USD"
FALLBACK_USD_TO_EUR = Decimal("0.95")


def _usable_rate(rate: Decimal) -> Decimal:
    """
    Raises:
        ValueError: If rate is not a finite positive number
    """
    if not rate.is_finite() or rate <= 0:
        raise ValueError(f"Unusable EUR rate: {rate}")
    return rate


class ExchangeRateClient:
    """Fetch the USD to EUR rate, never failing."""

    CACHE_KEY = "exchange_rate:usd:eur"

    def __init__(
        self,
        url: str = DEFAULT_RATES_URL,
        fallback_rate: Decimal = FALLBACK_USD_TO_EUR,
        valkey: ValkeyClient | None = None,
        cache_seconds: int = 3600,
        timeout: float = 10,
    ):
        self.url = url
        self.fallback_rate = fallback_rate
        self._valkey = valkey
        self._cache_seconds = cache_seconds
        self._timeout = timeout

    def _read_cache(self) -> Decimal | None:
        if self._valkey is None or not self._cache_seconds:
            return None
        try:
            cached = self._valkey.get(self.CACHE_KEY)
        except redis.RedisError as e:
            logger.warning(f"Exchange rate cache read failed: {e}")
            return None
        if cached is None:
            return None
        try:
            return _usable_rate(Decimal(cached))
        except (InvalidOperation, ValueError):
            logger.warning(f"Ignoring invalid cached exchange rate: {cached!r}")
            return None

    def _write_cache(self, rate: Decimal) -> None:
        if self._valkey is None or not self._cache_seconds:
            return
        try:
            self._valkey.set(self.CACHE_KEY, str(rate), expire_seconds=self._cache_seconds)
        except redis.RedisError as e:
            logger.warning(f"Exchange rate cache write failed: {e}")

    def _fetch(self) -> Decimal:
        """
        Raises:
            requests.RequestException, ValueError, KeyError, TypeError:
                On any network or payload problem
        """
        response = requests.get(self.url, timeout=self._timeout)
        response.raise_for_status()

        return _usable_rate(Decimal(str(response.json()["rates"]["EUR"])))

    def get_usd_to_eur_rate(self) -> Decimal:
        """Current rate, cached rate, or the fallback rate, in that order."""
        cached = self._read_cache()
        if cached is not None:
            return cached

        try:
            rate = self._fetch()
        except (requests.exceptions.RequestException, ValueError, KeyError, TypeError, ArithmeticError) as e:
            logger.error(f"Exchange rate fetch failed, using fallback {self.fallback_rate}: {e}")
            return self.fallback_rate

        self._write_cache(rate)
        return rate
