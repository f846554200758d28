import uuid

from sqlalchemy import Column, Integer, ForeignKey, Date, Numeric, String, DateTime, func
from sqlalchemy.orm import relationship

from app.core.database import Base


class Payment(Base):
    __tablename__ = "payments"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, nullable=False, index=True)

    # Both denormalized: the tenant's property at generation time
    tenant_id = Column(String(36), ForeignKey("tenants.id"), nullable=False, index=True)
    property_id = Column(String(36), ForeignKey("properties.id"), nullable=False, index=True)

    # Snapshot of Property.rent_amount when the payment was generated
    amount = Column(Numeric(10, 2), nullable=False)
    due_date = Column(Date, nullable=False, index=True)
    paid_date = Column(Date, nullable=True)  # set only while status == "paid"
    status = Column(String, nullable=False, default="pending", index=True)  # pending / paid / overdue
    description = Column(String, nullable=False)

    version = Column(Integer, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    # Read-only joins for list views
    tenant = relationship("Tenant", viewonly=True)
    property = relationship("Property", viewonly=True)

    __mapper_args__ = {"version_id_col": version}
