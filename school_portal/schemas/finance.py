"""Fee and payment schemas."""

from pydantic import Field

from school_portal.models.enums import PaymentMode
from school_portal.schemas.common import BaseSchema
from school_portal.schemas.student import Student


class Payment(BaseSchema):
    """A fee payment receipt. Append-only."""

    id: str = Field(..., min_length=1)
    student_id: str = Field(..., min_length=1)
    amount: int = Field(..., gt=0)
    date: str
    mode: PaymentMode = PaymentMode.CASH
    term: int = Field(..., ge=1, le=3)
    year: int


class FeeItem(BaseSchema):
    """One named charge in a fee structure."""

    name: str = Field(..., min_length=1)
    amount: int = Field(0, ge=0)


class FeeStructure(BaseSchema):
    """Charges for a grade in a term."""

    grade: str = Field(..., min_length=1)
    term: int = Field(..., ge=1, le=3)
    year: int | None = None
    items: list[FeeItem] = []


class DefaulterEntry(BaseSchema):
    """A student with an outstanding balance."""

    student: Student
    balance: int
