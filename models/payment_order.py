import json
from datetime import datetime
from decimal import Decimal
from models.db import db
from models.enums import PaymentOrderStatus

class PaymentOrder(db.Model):
    __tablename__ = "payment_orders"

    id = db.Column(db.Integer, primary_key=True)
    player_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    court_id = db.Column(db.Integer, db.ForeignKey("courts.id"), nullable=False, index=True)

    provider = db.Column(db.String(20), nullable=False, default="STRIPE")
    provider_order_id = db.Column(db.String(255), nullable=True, unique=True, index=True)

    amount = db.Column(db.Numeric(10, 2), nullable=False)
    currency = db.Column(db.String(10), nullable=False, default="INR")
    # [{"time_slot_id": 1, "price": "540.00"}, ...] in window order
    items_json = db.Column(db.Text, nullable=False)

    status = db.Column(
        db.Enum(PaymentOrderStatus, name="payment_order_status", native_enum=False, length=20),
        nullable=False,
        default=PaymentOrderStatus.PENDING,
        index=True,
    )
    failure_reason = db.Column(db.String(255), nullable=True)

    expires_at = db.Column(db.DateTime, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    paid_at = db.Column(db.DateTime, nullable=True)

    @property
    def items(self) -> list:
        return [
            {"time_slot_id": int(row["time_slot_id"]), "price": Decimal(row["price"])}
            for row in json.loads(self.items_json or "[]")
        ]

    @property
    def time_slot_ids(self) -> list:
        return [item["time_slot_id"] for item in self.items]
