"""Domain enumerations."""

import enum


class PerformanceLevel(str, enum.Enum):
    """CBC performance bands."""

    EXCEEDING = "Exceeding Expectations"
    MEETING = "Meeting Expectations"
    APPROACHING = "Approaching Expectations"
    BELOW = "Below Expectations"

    @property
    def code(self) -> str:
        """Two-letter rubric code (EE, ME, AE, BE)."""
        return {
            PerformanceLevel.EXCEEDING: "EE",
            PerformanceLevel.MEETING: "ME",
            PerformanceLevel.APPROACHING: "AE",
            PerformanceLevel.BELOW: "BE",
        }[self]


class PaymentMode(str, enum.Enum):
    """How a fee payment was received."""

    CASH = "Cash"
    MOBILE_MONEY = "M-Pesa"
    BANK = "Bank"

    @classmethod
    def from_string(cls, value: str) -> "PaymentMode":
        """Convert string to PaymentMode, handling common variations."""
        value = value.strip().upper().replace("_", "-")
        mapping = {
            "CASH": cls.CASH,
            "M-PESA": cls.MOBILE_MONEY,
            "MPESA": cls.MOBILE_MONEY,
            "MOBILE-MONEY": cls.MOBILE_MONEY,
            "MOBILE MONEY": cls.MOBILE_MONEY,
            "BANK": cls.BANK,
        }
        if value in mapping:
            return mapping[value]
        raise ValueError(f"Invalid payment mode: {value}")


class SubjectCategory(str, enum.Enum):
    """Curriculum tier a subject belongs to."""

    PRIMARY = "Primary"
    JSS = "JSS"


class CollectionName(str, enum.Enum):
    """Names of the persisted collections."""

    STUDENTS = "students"
    SUBJECTS = "subjects"
    ASSESSMENTS = "assessments"
    PAYMENTS = "payments"
    FEE_STRUCTURES = "fee_structures"
