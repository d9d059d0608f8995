from talenthr.models import db
from talenthr.utils.helpers import utcnow, iso

COMPANY_STATUSES = ("active", "suspended", "inactive")


class Company(db.Model):
    __tablename__ = "companies"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(150), unique=True, nullable=False)
    slug = db.Column(db.String(160), unique=True, nullable=False, index=True)
    status = db.Column(db.String(20), default="active", nullable=False)

    # Settings
    industry = db.Column(db.String(100))
    size = db.Column(db.String(50))
    website = db.Column(db.String(255))
    address = db.Column(db.String(255))
    phone = db.Column(db.String(50))

    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    def summary(self):
        return {"id": self.id, "name": self.name, "slug": self.slug}

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "status": self.status,
            "industry": self.industry,
            "size": self.size,
            "website": self.website,
            "address": self.address,
            "phone": self.phone,
            "createdAt": iso(self.created_at),
            "updatedAt": iso(self.updated_at),
        }

    def __repr__(self):
        return f"<Company {self.slug}>"
