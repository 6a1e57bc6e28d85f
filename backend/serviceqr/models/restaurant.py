"""Restaurant service models - restaurants, tables, service requests, feedback."""

from enum import Enum

from sqlalchemy import Column, Integer, String, ForeignKey, Text, JSON, UniqueConstraint
from sqlalchemy.orm import relationship, validates

from serviceqr.db.base import Base, CreatedAtMixin, TimestampMixin
from serviceqr.models.validators import not_blank, one_of, rating_score, validate_dict


class ServiceRequestType(str, Enum):
    WAITER = "waiter"
    WATER = "water"
    BILL = "bill"


class ServiceRequestStatus(str, Enum):
    PENDING = "pending"
    DONE = "done"


REQUEST_TYPES = {t.value for t in ServiceRequestType}
REQUEST_STATUSES = {s.value for s in ServiceRequestStatus}


class Restaurant(TimestampMixin, Base):
    """A tenant. The slug is the routing key used in every URL."""
    __tablename__ = "restaurants"

    id = Column(Integer, primary_key=True, index=True)
    slug = Column(String(100), nullable=False, unique=True, index=True)
    name = Column(String(200), nullable=False)
    logo_url = Column(String(500), nullable=True)
    # Sparse theme override; missing keys come from the default theme
    theme_config = Column(JSON, nullable=False, default=dict)

    tables = relationship(
        "Table", back_populates="restaurant", cascade="all, delete-orphan",
        order_by="Table.table_number",
    )

    @validates("theme_config")
    def _validate_theme_config(self, key, value):
        return validate_dict(key, value)


class Table(CreatedAtMixin, Base):
    """Restaurant table with its printed QR token."""
    __tablename__ = "tables"
    __table_args__ = (
        UniqueConstraint("restaurant_id", "table_number", name="uq_tables_restaurant_number"),
    )

    id = Column(Integer, primary_key=True, index=True)
    restaurant_id = Column(Integer, ForeignKey("restaurants.id", ondelete="CASCADE"), nullable=False, index=True)
    table_number = Column(String(50), nullable=False)
    qr_code_id = Column(String(100), nullable=False, unique=True, index=True)  # QR code token

    restaurant = relationship("Restaurant", back_populates="tables")
    service_requests = relationship("ServiceRequest", back_populates="table", cascade="all, delete-orphan")
    feedback = relationship("Feedback", back_populates="table", cascade="all, delete-orphan")

    @validates("table_number", "qr_code_id")
    def _validate_required(self, key, value):
        return not_blank(key, value)


class ServiceRequest(TimestampMixin, Base):
    """A guest's call for waiter, water or the bill."""
    __tablename__ = "service_requests"

    id = Column(Integer, primary_key=True, index=True)
    table_id = Column(Integer, ForeignKey("tables.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String(20), nullable=False)  # waiter, water, bill
    status = Column(String(20), nullable=False, default=ServiceRequestStatus.PENDING.value, index=True)  # pending, done

    table = relationship("Table", back_populates="service_requests")

    @validates("type")
    def _validate_type(self, key, value):
        if isinstance(value, ServiceRequestType):
            value = value.value
        return one_of(key, value, REQUEST_TYPES)

    @validates("status")
    def _validate_status(self, key, value):
        if isinstance(value, ServiceRequestStatus):
            value = value.value
        return one_of(key, value, REQUEST_STATUSES)


class Feedback(CreatedAtMixin, Base):
    """Guest rating, optionally tied to the request it follows."""
    __tablename__ = "feedback"

    id = Column(Integer, primary_key=True, index=True)
    table_id = Column(Integer, ForeignKey("tables.id", ondelete="CASCADE"), nullable=False, index=True)
    service_request_id = Column(Integer, ForeignKey("service_requests.id", ondelete="SET NULL"), nullable=True)
    rating = Column(Integer, nullable=False)
    comment = Column(Text, nullable=True)

    table = relationship("Table", back_populates="feedback")
    service_request = relationship("ServiceRequest")

    @validates("rating")
    def _validate_rating(self, key, value):
        return rating_score(key, value)
