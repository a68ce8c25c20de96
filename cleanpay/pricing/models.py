"""
Modèles du devis: attributs saisis (QuoteAttributes) et prix calculé (ComputedPrice).
La coercition est volontairement permissive: une valeur numérique illisible vaut 0.
"""
import re
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, FrozenSet, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def parse_int(value: Any) -> int:
    """
    Lit un entier comme le faisait le formulaire de devis (parseInt):
    - "12", 12, 12.7 et "12 sq ft" donnent 12
    - None, "", "abc" donnent 0
    """
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    match = _LEADING_INT.match(str(value))
    return int(match.group(1)) if match else 0


class TipSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    mode: Literal["fixed", "custom"] = "fixed"
    value: int = 0  # pourcentage entier

    @field_validator("value", mode="before")
    @classmethod
    def _lenient_value(cls, v: Any) -> int:
        return parse_int(v)


class QuoteAttributes(BaseModel):
    """
    Attributs d'un devis tels qu'envoyés par le formulaire (clés camelCase acceptées).
    - tipPercentage/customTip du formulaire sont convertis en TipSpec
      ("other" + customTip => mode custom).
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    service_type: str = Field(default="", alias="serviceType")
    frequency: Optional[str] = None
    bedrooms: int = 0
    bathrooms: int = 0
    property_size: int = Field(default=0, alias="propertySize")
    extras: FrozenSet[str] = frozenset()
    tip: TipSpec = TipSpec()

    @model_validator(mode="before")
    @classmethod
    def _tip_from_form(cls, data: Any) -> Any:
        if not isinstance(data, dict) or "tip" in data:
            return data
        data = dict(data)
        percentage = str(data.pop("tipPercentage", "") or "").strip()
        custom = data.pop("customTip", None)
        if percentage == "other":
            data["tip"] = {"mode": "custom", "value": custom}
        else:
            data["tip"] = {"mode": "fixed", "value": percentage}
        return data

    @field_validator("service_type", mode="before")
    @classmethod
    def _strip_service_type(cls, v: Any) -> str:
        return str(v or "").strip()

    @field_validator("frequency", mode="before")
    @classmethod
    def _strip_frequency(cls, v: Any) -> Optional[str]:
        v = str(v or "").strip()
        return v or None

    @field_validator("bedrooms", "bathrooms", "property_size", mode="before")
    @classmethod
    def _lenient_int(cls, v: Any) -> int:
        return parse_int(v)

    @field_validator("extras", mode="before")
    @classmethod
    def _normalize_extras(cls, v: Any) -> FrozenSet[str]:
        if not v:
            return frozenset()
        if isinstance(v, str):
            v = v.split(",")
        elif not isinstance(v, (list, tuple, set, frozenset)):
            return frozenset()
        return frozenset(str(x).strip() for x in v if str(x).strip())


@dataclass(frozen=True)
class ComputedPrice:
    amount_minor_units: int
    currency: str = "usd"

    @property
    def amount(self) -> Decimal:
        """Montant en unités monétaires (ex: Decimal('135.00'))."""
        return (Decimal(self.amount_minor_units) / 100).quantize(Decimal("0.01"))

    def to_public(self) -> Dict[str, Any]:
        return {
            "amountMinorUnits": self.amount_minor_units,
            "amount": f"{self.amount:.2f}",
            "currency": self.currency,
        }
