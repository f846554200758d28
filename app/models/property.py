import uuid

from sqlalchemy import Column, String, Integer, DateTime, Numeric
from sqlalchemy.sql import func
from app.core.database import Base


class Property(Base):
    __tablename__ = "properties"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, nullable=False, index=True)  # owning landlord (Supabase user id)

    name = Column(String, nullable=False)
    address = Column(String, nullable=False)

    city = Column(String, nullable=False)
    state = Column(String, nullable=False)
    zip_code = Column(String, nullable=True)

    type = Column(String, nullable=False)  # free text: apartment / house / studio ...
    bedrooms = Column(Integer, nullable=False, default=0)
    bathrooms = Column(Integer, nullable=False, default=0)
    area = Column(Integer, nullable=False, default=0)  # m2
    image_url = Column(String, nullable=True)

    rent_amount = Column(Numeric(10, 2), nullable=False)
    due_day = Column(Integer, nullable=False)  # 1-31, day of month rent is due

    # available / occupied - derived from tenant assignment, never set by clients
    status = Column(String, nullable=False, default="available")
    # Weak back-reference to the occupying tenant (no FK: tenants.property_id owns the link)
    tenant_id = Column(String(36), nullable=True, index=True)

    version = Column(Integer, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    __mapper_args__ = {"version_id_col": version}
