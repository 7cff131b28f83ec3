from models import db
from models.enums import RoleName
from models.user import Role


def seed_roles():
    existing = {r.name for r in Role.query.all()}
    for role in RoleName:
        if role.value not in existing:
            db.session.add(Role(name=role.value))
    db.session.commit()


def get_role(name) -> Role:
    return Role.query.filter_by(name=RoleName(name).value).first()
