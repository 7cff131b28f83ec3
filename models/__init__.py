from .db import db
from .user import User, Role, user_roles
from .audit_log import AuditLog
from .session import Session
from .facility import Facility
from .court import Court
from .time_slot import TimeSlot
from .booking import Booking
from .payment_order import PaymentOrder
from .payment import Payment
