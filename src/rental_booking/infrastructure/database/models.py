"""SQLAlchemy database models."""

from datetime import datetime
from uuid import uuid4

from sqlalchemy import Column, String, DateTime, Date, Boolean, Integer, Text, Enum as SQLEnum, ForeignKey, Numeric, Index, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID as PostgresUUID
from sqlalchemy.orm import declarative_base, relationship

from src.rental_booking.domain.entities.booking import BookingStatus
from src.rental_booking.domain.entities.notification import NotificationType

Base = declarative_base()


class UserModel(Base):
    """SQLAlchemy model for users."""

    __tablename__ = "users"

    # Primary key
    id = Column(PostgresUUID(as_uuid=True), primary_key=True, default=uuid4)

    # User details
    email = Column(String(255), nullable=False, unique=True, index=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)

    # Status
    is_active = Column(Boolean, nullable=False, default=True)

    # Timestamps
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self) -> str:
        return f"<UserModel(id={self.id}, email='{self.email}', name='{self.first_name} {self.last_name}')>"


class ItemModel(Base):
    """SQLAlchemy model for rental items."""

    __tablename__ = "items"

    # Primary key
    id = Column(PostgresUUID(as_uuid=True), primary_key=True, default=uuid4)

    # Item details
    owner_id = Column(PostgresUUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    category = Column(String(100), nullable=False, default="general")
    price = Column(Numeric(precision=12, scale=2), nullable=False)
    available = Column(Boolean, nullable=False, default=True)
    location = Column(String(255), nullable=True)
    image_url = Column(Text, nullable=True)

    # Timestamps
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    owner = relationship("UserModel", backref="items")

    def __repr__(self) -> str:
        return f"<ItemModel(id={self.id}, name='{self.name}', available={self.available})>"


class BookingModel(Base):
    """SQLAlchemy model for bookings."""

    __tablename__ = "bookings"
    __table_args__ = (
        CheckConstraint("start_date <= end_date", name="ck_bookings_date_order"),
        Index("ix_bookings_item_dates", "item_id", "start_date", "end_date"),
    )

    # Primary key
    id = Column(PostgresUUID(as_uuid=True), primary_key=True, default=uuid4)

    # References
    item_id = Column(PostgresUUID(as_uuid=True), ForeignKey("items.id"), nullable=False, index=True)
    user_id = Column(PostgresUUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)

    # Rental period and price
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    rental_days = Column(Integer, nullable=False)
    total_price = Column(Numeric(precision=12, scale=2), nullable=False)

    status = Column(SQLEnum(BookingStatus, values_callable=lambda obj: [e.value for e in obj]), nullable=False, default=BookingStatus.PENDING)

    # Payment tracking (no processing, only the reported state)
    payment_status = Column(String(50), nullable=False, default="pending")
    payment_transaction_id = Column(String(255), nullable=True)

    # Additional booking information
    delivery_address = Column(Text, nullable=True)
    special_instructions = Column(Text, nullable=True)

    # Timestamps
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    item = relationship("ItemModel", backref="bookings")

    def __repr__(self) -> str:
        return f"<BookingModel(id={self.id}, item_id={self.item_id}, status='{self.status}')>"


class NotificationModel(Base):
    """SQLAlchemy model for notifications."""

    __tablename__ = "notifications"

    # Primary key
    id = Column(PostgresUUID(as_uuid=True), primary_key=True, default=uuid4)

    user_id = Column(PostgresUUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    message = Column(String(1000), nullable=True)
    type = Column(SQLEnum(NotificationType, values_callable=lambda obj: [e.value for e in obj]), nullable=False)
    read = Column(Boolean, nullable=False, default=False)

    related_entity_id = Column(String(255), nullable=True)
    related_entity_type = Column(String(50), nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)

    def __repr__(self) -> str:
        return f"<NotificationModel(id={self.id}, user_id={self.user_id}, type='{self.type}', read={self.read})>"
