from datetime import datetime
from models.db import db
from models.enums import PaymentStatus

class Payment(db.Model):
    __tablename__ = "payments"

    id = db.Column(db.Integer, primary_key=True)
    payment_order_id = db.Column(db.Integer, db.ForeignKey("payment_orders.id"), nullable=False, index=True)

    provider = db.Column(db.String(20), nullable=False, default="STRIPE")
    provider_payment_id = db.Column(db.String(255), nullable=False, unique=True, index=True)
    amount = db.Column(db.Numeric(10, 2), nullable=False)
    currency = db.Column(db.String(10), nullable=False, default="INR")

    status = db.Column(
        db.Enum(PaymentStatus, name="payment_status", native_enum=False, length=20),
        nullable=False,
    )
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
