from datetime import datetime
from models.db import db

class TimeSlot(db.Model):
    __tablename__ = "time_slots"

    id = db.Column(db.Integer, primary_key=True)

    court_id = db.Column(db.Integer, db.ForeignKey("courts.id"), nullable=False, index=True)
    start_time = db.Column(db.DateTime, nullable=False, index=True)
    end_time = db.Column(db.DateTime, nullable=False)

    # NULL means "use the court's price_per_hour"
    price = db.Column(db.Numeric(10, 2), nullable=True)

    is_maintenance_blocked = db.Column(db.Boolean, default=False, nullable=False)
    maintenance_reason = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    court = db.relationship("Court")

    __table_args__ = (
        # Bulk generation relies on this key for insert-skip-duplicates
        db.UniqueConstraint("court_id", "start_time", name="uq_time_slot_court_start"),
        db.CheckConstraint("end_time > start_time", name="ck_time_slot_order"),
    )
