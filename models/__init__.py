from .db import db
from .user import User
from .audit_log import AuditLog
from .session import Session
from .barber_profile import BarberProfile
from .connect_account import ConnectAccount
from .booking import Booking
from .payment import Payment
from .refund import PaymentRefund
from .reminder import BookingReminder
from .rate_limit_counter import RateLimitCounter
from .support_message import SupportMessage
