from datetime import datetime
from models.db import db
from models.enums import RoleName

# many-to-many User <-> Role; a user holds PLAYER plus OWNER and/or ADMIN
user_roles = db.Table(
    "user_roles",
    db.Column("user_id", db.Integer, db.ForeignKey("users.id"), primary_key=True),
    db.Column("role_id", db.Integer, db.ForeignKey("roles.id"), primary_key=True),
)

class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)

    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    full_name = db.Column(db.String(120), nullable=True)
    phone_number = db.Column(db.String(30), nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    roles = db.relationship("Role", secondary=user_roles, back_populates="users")
    facilities = db.relationship(
        "Facility",
        foreign_keys="Facility.owner_user_id",
        back_populates="owner",
        order_by="Facility.id",
    )

    @property
    def role_names(self) -> set:
        return {r.name for r in self.roles}

    def has_role(self, role) -> bool:
        return RoleName(role).value in self.role_names

    @property
    def is_admin(self) -> bool:
        return self.has_role(RoleName.ADMIN)

    def owns(self, facility) -> bool:
        return facility is not None and facility.owner_user_id == self.id

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "full_name": self.full_name,
            "phone_number": self.phone_number,
            "roles": sorted(self.role_names),
            "facility_ids": [f.id for f in self.facilities],
        }

class Role(db.Model):
    __tablename__ = "roles"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(50), unique=True, nullable=False)

    users = db.relationship("User", secondary=user_roles, back_populates="roles")
