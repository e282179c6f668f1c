"""
Relational schema for the Supabase Postgres database, via SQLAlchemy.

Tables mirror the ones the Supabase project exposes. A trip owns every
row below it; deleting a trip deletes its itinerary, schedules, travel
details, accommodations, companions and diary entries. Travel contacts
belong to the user and outlive the trip.
"""
import logging
import uuid
from contextlib import contextmanager
from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    create_engine,
    inspect,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker

logger = logging.getLogger(__name__)

Base = declarative_base()

TRIP_STATUS_PLANNING = "planning"
TRIP_STATUS_PLANNED = "planned"


def generate_id():
    return str(uuid.uuid4())


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(String, primary_key=True)
    phone = Column(String, nullable=True)
    is_phone_verified = Column(Boolean, default=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class Trip(Base):
    __tablename__ = "trips"

    id = Column(String, primary_key=True, default=generate_id)
    user_id = Column(String, index=True, nullable=False)
    title = Column(String, nullable=False)
    destination = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    start_date = Column(String)  # YYYY-MM-DD
    end_date = Column(String)  # YYYY-MM-DD
    status = Column(String, default=TRIP_STATUS_PLANNING)  # planning, planned
    manual_entry_data = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    itinerary = relationship("ItineraryRecord", back_populates="trip", uselist=False, cascade="all, delete-orphan")
    day_schedules = relationship("DaySchedule", back_populates="trip", cascade="all, delete-orphan")
    travel_details = relationship("TravelDetail", back_populates="trip", cascade="all, delete-orphan")
    accommodations = relationship("AccommodationRecord", back_populates="trip", cascade="all, delete-orphan")
    companions = relationship("Companion", back_populates="trip", cascade="all, delete-orphan")
    itinerary_items = relationship(
        "TripItineraryItem",
        back_populates="trip",
        cascade="all, delete-orphan",
        order_by="TripItineraryItem.day_number",
    )


class ItineraryRecord(Base):
    __tablename__ = "itineraries"

    id = Column(String, primary_key=True, default=generate_id)
    trip_id = Column(String, ForeignKey("trips.id", ondelete="CASCADE"), unique=True)
    user_id = Column(String, nullable=False)
    title = Column(String)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    trip = relationship("Trip", back_populates="itinerary")
    days = relationship(
        "ItineraryDayRecord",
        back_populates="itinerary",
        cascade="all, delete-orphan",
        order_by="ItineraryDayRecord.day_number",
    )


class ItineraryDayRecord(Base):
    __tablename__ = "itinerary_days"

    id = Column(String, primary_key=True, default=generate_id)
    itinerary_id = Column(String, ForeignKey("itineraries.id", ondelete="CASCADE"))
    day_number = Column(Integer)
    date = Column(String, nullable=True)
    title = Column(String, nullable=True)
    description = Column(Text, nullable=True)
    accommodation = Column(String, nullable=True)
    notes = Column(Text, nullable=True)

    itinerary = relationship("ItineraryRecord", back_populates="days")
    activities = relationship(
        "ActivityRecord",
        back_populates="day",
        cascade="all, delete-orphan",
        order_by="ActivityRecord.sort_order",
    )
    meals = relationship("MealRecord", back_populates="day", cascade="all, delete-orphan")


class ActivityRecord(Base):
    __tablename__ = "activities"

    id = Column(String, primary_key=True, default=generate_id)
    day_id = Column(String, ForeignKey("itinerary_days.id", ondelete="CASCADE"))
    title = Column(String)
    description = Column(Text)
    type = Column(String)
    location_name = Column(String, default="")
    location_address = Column(String, default="")
    location_place_id = Column(String, default="")
    lat = Column(Float, nullable=True)
    lng = Column(Float, nullable=True)
    start_time = Column(String, nullable=True)
    end_time = Column(String, nullable=True)
    duration = Column(String, nullable=True)
    image_url = Column(String, nullable=True)
    map_url = Column(String, nullable=True)
    cost = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
    sort_order = Column(Integer, default=0)

    day = relationship("ItineraryDayRecord", back_populates="activities")


class MealRecord(Base):
    __tablename__ = "meals"

    id = Column(String, primary_key=True, default=generate_id)
    day_id = Column(String, ForeignKey("itinerary_days.id", ondelete="CASCADE"))
    type = Column(String)  # breakfast, lunch, dinner
    name = Column(String)
    location = Column(String, nullable=True)
    description = Column(Text, nullable=True)
    place_id = Column(String, nullable=True)

    day = relationship("ItineraryDayRecord", back_populates="meals")


class DaySchedule(Base):
    __tablename__ = "trip_day_schedules"

    id = Column(String, primary_key=True, default=generate_id)
    trip_id = Column(String, ForeignKey("trips.id", ondelete="CASCADE"))
    day_number = Column(Integer)
    date = Column(String, nullable=True)
    title = Column(String, nullable=True)
    activities = Column(JSON, default=list)
    accommodation = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    trip = relationship("Trip", back_populates="day_schedules")


class TravelDetail(Base):
    __tablename__ = "trip_travel_details"

    id = Column(String, primary_key=True, default=generate_id)
    trip_id = Column(String, ForeignKey("trips.id", ondelete="CASCADE"))
    mode = Column(String)
    details = Column(Text, nullable=True)
    departure_location = Column(String, nullable=True)
    arrival_location = Column(String, nullable=True)
    departure_date = Column(String, nullable=True)
    departure_time = Column(String, nullable=True)
    arrival_time = Column(String, nullable=True)
    booking_reference = Column(String, nullable=True)
    contact_info = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    trip = relationship("Trip", back_populates="travel_details")


class AccommodationRecord(Base):
    __tablename__ = "trip_accommodations"

    id = Column(String, primary_key=True, default=generate_id)
    trip_id = Column(String, ForeignKey("trips.id", ondelete="CASCADE"))
    name = Column(String)
    address = Column(String, nullable=True)
    check_in = Column(String, nullable=True)
    check_out = Column(String, nullable=True)
    confirmation_number = Column(String, nullable=True)
    contact_info = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    trip = relationship("Trip", back_populates="accommodations")


class Companion(Base):
    __tablename__ = "trip_companions"

    id = Column(String, primary_key=True, default=generate_id)
    trip_id = Column(String, ForeignKey("trips.id", ondelete="CASCADE"))
    name = Column(String, nullable=False)
    email = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    relationship_type = Column("relationship", String, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    trip = relationship("Trip", back_populates="companions")


class TripItineraryItem(Base):
    """A single diary entry added to a trip after it was created."""

    __tablename__ = "trip_itinerary"

    id = Column(String, primary_key=True, default=generate_id)
    trip_id = Column(String, ForeignKey("trips.id", ondelete="CASCADE"))
    day_number = Column(Integer, nullable=True)
    title = Column(String)
    description = Column(Text, nullable=True)
    activity_type = Column(String, default="activity")
    location = Column(String, nullable=True)
    start_time = Column(String, nullable=True)
    end_time = Column(String, nullable=True)
    estimated_cost = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    trip = relationship("Trip", back_populates="itinerary_items")


class TravelContact(Base):
    """User-level contact book; phone numbers are unique per user."""

    __tablename__ = "travel_contacts"

    id = Column(String, primary_key=True, default=generate_id)
    user_id = Column(String, index=True, nullable=False)
    trip_id = Column(String, ForeignKey("trips.id", ondelete="SET NULL"), nullable=True)
    name = Column(String, nullable=False)
    phone = Column(String)
    relationship_type = Column("relationship", String, nullable=True)
    email = Column(String, nullable=True)
    address = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
    priority = Column(Integer, default=3)
    created_at = Column(DateTime, default=datetime.utcnow)


class AssistantConversation(Base):
    __tablename__ = "assistant_conversations"

    id = Column(String, primary_key=True, default=generate_id)
    user_id = Column(String, index=True)
    messages = Column(JSON, default=list)
    trip_data = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


def row_to_dict(row):
    """Plain-column dict for a mapped row, for JSON responses."""
    data = {}
    for attr in inspect(row).mapper.column_attrs:
        value = getattr(row, attr.key)
        if isinstance(value, datetime):
            value = value.isoformat()
        data[attr.columns[0].name] = value
    return data


class Database:
    """Engine and session factory for one process."""

    def __init__(self, url: str, **engine_kwargs):
        if url.startswith("sqlite"):
            engine_kwargs.setdefault("connect_args", {"check_same_thread": False})
        else:
            engine_kwargs.setdefault("pool_pre_ping", True)
        self.engine = create_engine(url, **engine_kwargs)
        self.Session = sessionmaker(bind=self.engine, expire_on_commit=False)

    def create_all(self):
        Base.metadata.create_all(bind=self.engine)

    @contextmanager
    def session_scope(self):
        """Yield a session; commit on success, roll back on any error."""
        session = self.Session()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def dispose(self):
        self.engine.dispose()
