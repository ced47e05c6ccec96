from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from datetime import date, datetime
from typing import Optional, Union

from spend_sorter.domain.errors import ValidationError

DATE_FORMATS = ("%Y-%m-%d", "%m/%d/%Y", "%m/%d/%y")

DateInput = Union[date, str, None]
AmountInput = Union[Decimal, int, float, str, None]


def _is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def parse_date(value: DateInput) -> date:
    """
    Parse a transaction date.

    Accepts date/datetime objects or text in one of DATE_FORMATS.

    Raises:
        ValidationError: If the value is empty or not a recognizable date
    """
    if _is_blank(value):
        raise ValidationError("Date is required")

    if isinstance(value, datetime):
        return value.date()

    if isinstance(value, date):
        return value

    text = str(value).strip()
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue

    raise ValidationError(f"Unrecognized date: {text!r}")


def parse_amount(value: AmountInput) -> Decimal:
    """
    Parse a money amount into a Decimal.

    Dollar signs, thousands separators and surrounding whitespace are
    stripped from text input.

    Raises:
        ValidationError: If the value is empty or not numeric
    """
    if _is_blank(value):
        raise ValidationError("Amount is required")

    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, float):
        # Go through str so 0.1 doesn't become 0.1000000000000000055...
        amount = Decimal(str(value))
    else:
        text = str(value).strip().replace("$", "").replace(",", "")
        try:
            amount = Decimal(text)
        except InvalidOperation:
            raise ValidationError(f"Amount is not a number: {value!r}")

    if not amount.is_finite():
        raise ValidationError(f"Amount is not a number: {value!r}")

    return amount


@dataclass(frozen=True)
class Transaction:
    """Core domain model representing a single transaction"""
    date: date
    description: str
    amount: Decimal

    @classmethod
    def create(
        cls,
        date: DateInput,
        description: Optional[str],
        amount: AmountInput,
    ) -> "Transaction":
        """
        Build a transaction from raw values.

        Raises:
            ValidationError: If date, description or amount is missing or malformed
        """
        if _is_blank(date) or _is_blank(description) or _is_blank(amount):
            raise ValidationError(
                "Cannot create transaction without date, description and amount"
            )

        return cls(
            date=parse_date(date),
            description=description.strip(),
            amount=parse_amount(amount),
        )

    @property
    def credit(self) -> Decimal:
        """Money coming in"""
        return self.amount if self.amount > 0 else Decimal("0")

    @property
    def debit(self) -> Decimal:
        """Money going out, as a positive number"""
        return -self.amount if self.amount < 0 else Decimal("0")

    def render(self) -> str:
        return (
            f"Date: {self.date:%x}\n"
            f"Description: {self.description}\n"
            f"Amount: {self.amount:.2f}\n"
        )

    def __repr__(self):
        return f"Transaction({self.date}, {self.description[:30]}, {self.amount})"


@dataclass(frozen=True)
class LedgerTransaction:
    """
    Bank ledger entry with separate credit and debit columns.

    Both columns are non-negative; the signed amount is derived.
    """
    date: date
    description: str
    credit: Decimal
    debit: Decimal
    check: Optional[str] = None

    @classmethod
    def create(
        cls,
        date: DateInput,
        description: Optional[str],
        credit: AmountInput = None,
        debit: AmountInput = None,
        check: Optional[str] = None,
    ) -> "LedgerTransaction":
        """
        Build a ledger entry from raw values.

        At least one of credit and debit must be given, the other defaults to 0.

        Raises:
            ValidationError: If a required field is missing, or an amount is
                malformed or negative
        """
        if _is_blank(date) or _is_blank(description):
            raise ValidationError(
                "Cannot create transaction without date and description"
            )

        if _is_blank(credit) and _is_blank(debit):
            raise ValidationError(
                "Cannot create transaction without a credit or a debit"
            )

        credit_amount = Decimal("0") if _is_blank(credit) else parse_amount(credit)
        debit_amount = Decimal("0") if _is_blank(debit) else parse_amount(debit)

        if credit_amount < 0 or debit_amount < 0:
            raise ValidationError(
                f"Credit and debit must not be negative, got {credit_amount} / {debit_amount}"
            )

        return cls(
            date=parse_date(date),
            description=description.strip(),
            credit=credit_amount,
            debit=debit_amount,
            check=None if _is_blank(check) else str(check).strip(),
        )

    @property
    def amount(self) -> Decimal:
        """Signed amount for net calculations"""
        return self.credit - self.debit

    def render(self) -> str:
        return (
            f"Date: {self.date:%x}\n"
            f"Description: {self.description}\n"
            f"Check: {self.check or 'N/A'}\n"
            f"Credit: {self.credit:.2f}\n"
            f"Debit: {self.debit:.2f}\n"
        )

    def __repr__(self):
        return (
            f"LedgerTransaction({self.date}, {self.description[:30]}, "
            f"+{self.credit}/-{self.debit})"
        )
