from sqlalchemy import Column, Date, DateTime, Index, Integer, String

from infrastructure.database import Base


class ReservationRecord(Base):
    __tablename__ = "reservations"

    id = Column(String(36), primary_key=True)
    resource_id = Column(String, nullable=False)
    holder_id = Column(String, nullable=False)

    check_in = Column(Date, nullable=False)
    check_out = Column(Date, nullable=False)

    total_cents = Column(Integer, nullable=False)
    currency = Column(String(3), nullable=False)

    status = Column(String, nullable=False)  # pending/confirmed/cancelled/completed

    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("ix_reservations_resource_range", "resource_id", "check_in", "check_out"),
        Index("ix_reservations_holder_status", "holder_id", "status"),
    )


class ResourceRecord(Base):
    __tablename__ = "resources"

    id = Column(String, primary_key=True)
    title = Column(String, nullable=True)
    nightly_cents = Column(Integer, nullable=False)
    currency = Column(String(3), nullable=False)
