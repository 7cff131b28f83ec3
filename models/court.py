from datetime import datetime
from models.db import db
from models.enums import SportType

class Court(db.Model):
    __tablename__ = "courts"

    id = db.Column(db.Integer, primary_key=True)
    facility_id = db.Column(db.Integer, db.ForeignKey("facilities.id"), nullable=False, index=True)
    name = db.Column(db.String(120), nullable=False)
    sport_type = db.Column(
        db.Enum(SportType, name="sport_type", native_enum=False, length=20),
        nullable=False,
    )

    price_per_hour = db.Column(db.Numeric(10, 2), nullable=False)
    operating_start_hour = db.Column(db.Integer, nullable=False, default=6)
    operating_end_hour = db.Column(db.Integer, nullable=False, default=22)

    # soft-deactivated instead of deleted while bookings exist
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    facility = db.relationship("Facility", back_populates="courts")

    __table_args__ = (
        db.CheckConstraint("operating_end_hour > operating_start_hour", name="ck_court_operating_hours"),
        db.CheckConstraint("price_per_hour > 0", name="ck_court_price_positive"),
    )
