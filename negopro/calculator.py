"""
negopro/calculator.py

Negotiation calculator.

Converts between unit price and discount percentage and projects the savings of
a negotiated price over a monthly consumption and a duration in months.

Rules:
- unit_savings       = current - negotiated (negative means a price increase)
- savings_percentage = unit_savings / current * 100, and 0 when current == 0
- total_savings      = unit_savings * monthly consumption * months
- A price derived from a percentage is clamped to a minimum of 0.

IMPORTANT:
- Nothing here raises on bad input. User input is coerced to 0.
- All arithmetic uses Decimal. Rounding to cents happens only when values are
  persisted (see repository.commit_negotiation).
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Optional

SAVING = "Saving"
AVOIDANCE = "Avoidance"
CLASSIFICATIONS = (SAVING, AVOIDANCE)

MODE_PRICE = "price"
MODE_PERCENTAGE = "percentage"

DEFAULT_DURATION_MONTHS = 12

ZERO = Decimal("0")
HUNDRED = Decimal("100")

# Input bounds: prices fit Numeric(14, 2), consumption fits Numeric(12, 2)
MAX_AMOUNT = Decimal("1e12")
MAX_QUANTITY = Decimal("1e10")
MAX_MONTHS = Decimal("10000")


# ---------------------------------------------------------------------
# Input coercion
# ---------------------------------------------------------------------
def coerce_number(value: Any, limit: Optional[Decimal] = MAX_AMOUNT) -> Decimal:
    """
    Coerce user input to Decimal.

    Accepts Decimal/int/float and numeric strings. A comma is read as the
    decimal separator ("12,5" -> 12.5). Currency symbols and spaces are
    stripped. Anything else becomes 0, and so does a number whose magnitude
    reaches limit (pass limit=None for values already stored).
    """
    number = _parse_number(value)
    if limit is not None and abs(number) >= limit:
        return ZERO
    return number


def _parse_number(value: Any) -> Decimal:
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        return value if value.is_finite() else ZERO
    if isinstance(value, (int, float)):
        try:
            number = Decimal(str(value))
        except InvalidOperation:
            return ZERO
        return number if number.is_finite() else ZERO

    raw = str(value).strip().replace("$", "").replace(" ", "").replace(",", ".")
    if raw == "":
        return ZERO
    try:
        number = Decimal(raw)
    except InvalidOperation:
        return ZERO
    return number if number.is_finite() else ZERO


def coerce_months(value: Any) -> int:
    """Coerce a duration to whole months (fractions are truncated)."""
    return int(coerce_number(value, limit=MAX_MONTHS))


def normalize_classification(value: Any) -> str:
    """Return SAVING or AVOIDANCE for form input; anything unknown is a Saving."""
    raw = (str(value or "")).strip().lower()
    if raw == AVOIDANCE.lower():
        return AVOIDANCE
    return SAVING


# ---------------------------------------------------------------------
# Core formulas
# ---------------------------------------------------------------------
def unit_savings(current_price: Any, negotiated_price: Any) -> Decimal:
    return coerce_number(current_price) - coerce_number(negotiated_price)


def savings_percentage(current_price: Any, negotiated_price: Any) -> Decimal:
    current = coerce_number(current_price)
    if current == ZERO:
        return ZERO
    return unit_savings(current, negotiated_price) / current * HUNDRED


def price_from_percentage(current_price: Any, percentage: Any) -> Decimal:
    """Negotiated price for a discount percentage (never below 0)."""
    current = coerce_number(current_price)
    price = current - current * (coerce_number(percentage) / HUNDRED)
    if price < ZERO:
        return ZERO
    return price


def total_savings(current_price: Any, negotiated_price: Any, monthly_consumption: Any, months: Any) -> Decimal:
    return (
        unit_savings(current_price, negotiated_price)
        * coerce_number(monthly_consumption)
        * Decimal(coerce_months(months))
    )


# ---------------------------------------------------------------------
# Session view model
# ---------------------------------------------------------------------
class NegotiationLine:
    """
    Editable negotiation state for one product.

    negotiated_price and discount_percentage are kept synchronized: editing one
    recomputes the other.
    """

    def __init__(
        self,
        product_id: int,
        description: str = "",
        current_price: Any = 0,
        monthly_consumption: Any = 0,
        classification: str = SAVING,
        negotiated_price: Any = None,
        duration_months: Any = DEFAULT_DURATION_MONTHS,
    ):
        self.product_id = int(product_id)
        self.description = description or ""
        self.current_price = coerce_number(current_price)
        # stored price the line started from; an edited current_price may differ
        self.base_price = self.current_price
        self.monthly_consumption = coerce_number(monthly_consumption, limit=MAX_QUANTITY)
        self.classification = normalize_classification(classification)
        self.duration_months = coerce_months(duration_months)

        if negotiated_price is None:
            self.negotiated_price = self.current_price
        else:
            self.negotiated_price = coerce_number(negotiated_price)
        self.discount_percentage = savings_percentage(self.current_price, self.negotiated_price)

        # True once the user touched the line in this session
        self.edited = False

    # -----------------------------
    # Editing
    # -----------------------------
    def set_negotiated_price(self, value: Any) -> None:
        self.negotiated_price = coerce_number(value)
        self.discount_percentage = savings_percentage(self.current_price, self.negotiated_price)

    def set_discount_percentage(self, value: Any) -> None:
        self.discount_percentage = coerce_number(value)
        self.negotiated_price = price_from_percentage(self.current_price, self.discount_percentage)

    def set_current_price(self, value: Any, mode: str = MODE_PRICE) -> None:
        """Change the base price; the side that is not being edited follows."""
        self.current_price = coerce_number(value)
        if mode == MODE_PERCENTAGE:
            self.negotiated_price = price_from_percentage(self.current_price, self.discount_percentage)
        else:
            self.discount_percentage = savings_percentage(self.current_price, self.negotiated_price)

    def set_monthly_consumption(self, value: Any) -> None:
        self.monthly_consumption = coerce_number(value, limit=MAX_QUANTITY)

    def set_duration_months(self, value: Any) -> None:
        self.duration_months = coerce_months(value)

    def set_classification(self, value: Any) -> None:
        self.classification = normalize_classification(value)

    def apply(self, form: Dict[str, Any]) -> None:
        """
        Apply one calculator form submission.

        Expected keys: mode, current_price, negotiated_price, percentage,
        monthly_consumption, duration_months, classification. Missing keys keep
        their current value.
        """
        mode = form.get("mode") or MODE_PRICE

        if "current_price" in form:
            self.set_current_price(form.get("current_price"), mode=mode)
        if mode == MODE_PERCENTAGE:
            if "percentage" in form:
                self.set_discount_percentage(form.get("percentage"))
        elif "negotiated_price" in form:
            self.set_negotiated_price(form.get("negotiated_price"))

        if "monthly_consumption" in form:
            self.set_monthly_consumption(form.get("monthly_consumption"))
        if "duration_months" in form:
            self.set_duration_months(form.get("duration_months"))
        if "classification" in form:
            self.set_classification(form.get("classification"))

        self.edited = True

    # -----------------------------
    # Derived values
    # -----------------------------
    @property
    def unit_savings(self) -> Decimal:
        return unit_savings(self.current_price, self.negotiated_price)

    @property
    def savings_percentage(self) -> Decimal:
        return savings_percentage(self.current_price, self.negotiated_price)

    @property
    def total_savings(self) -> Decimal:
        return total_savings(
            self.current_price,
            self.negotiated_price,
            self.monthly_consumption,
            self.duration_months,
        )

    @property
    def is_changed(self) -> bool:
        return self.negotiated_price != self.current_price

    def to_dict(self) -> Dict[str, Any]:
        """Session-cookie friendly snapshot (strings for Decimal values)."""
        return {
            "product_id": self.product_id,
            "description": self.description,
            "base_price": str(self.base_price),
            "current_price": str(self.current_price),
            "negotiated_price": str(self.negotiated_price),
            "discount_percentage": str(self.discount_percentage),
            "monthly_consumption": str(self.monthly_consumption),
            "duration_months": self.duration_months,
            "classification": self.classification,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NegotiationLine":
        line = cls(
            product_id=data["product_id"],
            description=data.get("description", ""),
            current_price=data.get("current_price"),
            monthly_consumption=data.get("monthly_consumption"),
            classification=data.get("classification", SAVING),
            negotiated_price=data.get("negotiated_price"),
            duration_months=data.get("duration_months", DEFAULT_DURATION_MONTHS),
        )
        if data.get("discount_percentage") is not None:
            # keep a percentage above 100 as typed (the price is already clamped)
            line.discount_percentage = coerce_number(data["discount_percentage"])
        line.base_price = coerce_number(data.get("base_price", data.get("current_price")))
        line.edited = True
        return line

    def __repr__(self):
        return f"<NegotiationLine {self.product_id} {self.current_price} -> {self.negotiated_price}>"


class NegotiationSession:
    """
    Transient negotiation state for the products of one supplier.

    The session is rebuilt on every request from the stored products plus the
    draft kept in the user's session cookie (see to_draft/from_products).
    """

    def __init__(self, supplier_id: int, lines: Optional[Iterable[NegotiationLine]] = None):
        self.supplier_id = int(supplier_id)
        self.lines: List[NegotiationLine] = list(lines or [])

    @classmethod
    def from_products(
        cls,
        supplier_id: int,
        products: Iterable[Any],
        draft: Optional[Dict[str, Any]] = None,
        default_months: int = DEFAULT_DURATION_MONTHS,
    ) -> "NegotiationSession":
        """
        Build lines for stored products, restoring any drafted line.

        A drafted line is dropped when the stored current price changed since the
        draft was taken (someone committed in the meantime). The draft keeps that
        stored price as base_price, so an edited current price survives.
        """
        draft = draft or {}
        lines = []
        for product in products:
            drafted = draft.get(str(product.id))
            stored_price = coerce_number(product.current_price)
            drafted_base = None
            if drafted:
                drafted_base = coerce_number(drafted.get("base_price", drafted.get("current_price")))
            if drafted and drafted_base == stored_price:
                line = NegotiationLine.from_dict(drafted)
                line.description = product.description
            else:
                line = NegotiationLine(
                    product_id=product.id,
                    description=product.description,
                    current_price=stored_price,
                    monthly_consumption=product.monthly_consumption,
                    classification=product.classification,
                    duration_months=default_months,
                )
            lines.append(line)
        return cls(supplier_id, lines)

    def get_line(self, product_id: int) -> Optional[NegotiationLine]:
        for line in self.lines:
            if line.product_id == int(product_id):
                return line
        return None

    def apply_bulk(self, percentage: Any, classification: Any) -> None:
        """
        Apply one discount percentage and one classification to every line.

        This overwrites any individual negotiation made in this session.
        Consumption and duration are kept.
        """
        for line in self.lines:
            line.set_classification(classification)
            line.set_discount_percentage(percentage)
            line.edited = True

    def changed_lines(self) -> List[NegotiationLine]:
        return [line for line in self.lines if line.is_changed]

    def totals(self) -> Dict[str, Decimal]:
        """Projected savings per classification over all lines."""
        savings = ZERO
        avoidance = ZERO
        for line in self.lines:
            if line.classification == SAVING:
                savings += line.total_savings
            elif line.classification == AVOIDANCE:
                avoidance += line.total_savings
        return {"savings": savings, "avoidance": avoidance, "total": savings + avoidance}

    def to_draft(self) -> Dict[str, Dict[str, Any]]:
        """Only edited lines are kept in the draft (it lives in the session cookie)."""
        return {str(line.product_id): line.to_dict() for line in self.lines if line.edited}
