"""
Currencies the ledger accepts.

Amount columns are Numeric(18, 2), so every registered currency has two
decimal places; the registry still carries the precision so rounding is
derived from it rather than hard-coded.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import ClassVar


@dataclass(frozen=True)
class CurrencyInfo:
    code: str
    decimal_places: int
    name: str

    @property
    def quantum(self) -> Decimal:
        """Smallest unit, as the exponent for ``Decimal.quantize``."""
        return Decimal(1).scaleb(-self.decimal_places)


def _normalize(code: object) -> str:
    return code.strip().upper() if isinstance(code, str) else ""


class CurrencyRegistry:
    """Lookup of the supported ISO 4217 currencies (Latin America plus majors)."""

    _CURRENCIES: ClassVar[dict[str, CurrencyInfo]] = {
        info.code: info
        for info in (
            CurrencyInfo("BRL", 2, "Brazilian Real"),
            CurrencyInfo("USD", 2, "US Dollar"),
            CurrencyInfo("EUR", 2, "Euro"),
            CurrencyInfo("GBP", 2, "Pound Sterling"),
            CurrencyInfo("ARS", 2, "Argentine Peso"),
            CurrencyInfo("MXN", 2, "Mexican Peso"),
            CurrencyInfo("PEN", 2, "Peruvian Sol"),
            CurrencyInfo("UYU", 2, "Uruguayan Peso"),
        )
    }

    @classmethod
    def get_info(cls, code: str) -> CurrencyInfo | None:
        return cls._CURRENCIES.get(_normalize(code))

    @classmethod
    def is_valid(cls, code: str) -> bool:
        return cls.get_info(code) is not None

    @classmethod
    def get_decimal_places(cls, code: str) -> int:
        info = cls.get_info(code)
        return info.decimal_places if info else 2

    @classmethod
    def validate(cls, code: str) -> str:
        """Return the normalized code; ``ValueError`` when unsupported."""
        info = cls.get_info(code)
        if info is None:
            raise ValueError(f"Unsupported currency code: {code!r}")
        return info.code
