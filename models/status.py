import enum

from models.db import db


class BookingStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"

    def can_advance_to(self, target: "BookingStatus") -> bool:
        return target in _BOOKING_TRANSITIONS[self]


# Forward-only lifecycle: pending -> confirmed -> {cancelled, completed}
_BOOKING_TRANSITIONS = {
    BookingStatus.PENDING: {BookingStatus.CONFIRMED, BookingStatus.CANCELLED},
    BookingStatus.CONFIRMED: {BookingStatus.CANCELLED, BookingStatus.COMPLETED},
    BookingStatus.CANCELLED: set(),
    BookingStatus.COMPLETED: set(),
}

# Statuses that still expect the appointment to happen
REMINDABLE_BOOKING_STATUSES = (BookingStatus.CONFIRMED, BookingStatus.PENDING)


class PaymentStatus(str, enum.Enum):
    SUCCEEDED = "succeeded"
    REFUNDED = "refunded"
    FAILED = "failed"


class ConnectAccountStatus(str, enum.Enum):
    PENDING = "pending"
    ACTIVE = "active"


class ReminderType(str, enum.Enum):
    APPOINTMENT_REMINDER = "appointment_reminder"


class NotificationEvent(str, enum.Enum):
    BOOKING_CONFIRMED = "booking_confirmed"
    BOOKING_CANCELLED = "booking_cancelled"
    BOOKING_UPDATED = "booking_updated"
    APPOINTMENT_REMINDER = "appointment_reminder"


class SupportCategory(str, enum.Enum):
    GENERAL = "general"
    BILLING = "billing"
    BOOKING = "booking"
    TECHNICAL = "technical"
    ACCOUNT = "account"


def enum_column(enum_cls):
    """String-backed column type that stores the enum *value* and rejects anything else."""
    return db.Enum(
        enum_cls,
        native_enum=False,
        create_constraint=True,
        length=32,
        values_callable=lambda e: [m.value for m in e],
        validate_strings=True,
    )
