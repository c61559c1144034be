from datetime import datetime
from sqlalchemy import (
    Column, Integer, Text, Float, Date, ForeignKey, Index,
    DateTime,
)
from sqlalchemy.orm import relationship
from db.database import Base


class User(Base):
    __tablename__ = "users"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(Text, unique=True, nullable=False)
    display_name = Column(Text, nullable=False)
    password_hash = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    profile = relationship("Profile", back_populates="user", uselist=False, cascade="all, delete-orphan")
    weight_entries = relationship("WeightEntry", back_populates="user", cascade="all, delete-orphan")
    glucose_logs = relationship("GlucoseLog", back_populates="user", cascade="all, delete-orphan")


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, unique=True)
    name = Column(Text, nullable=False)
    birthdate = Column(Date)
    height_cm = Column(Float)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="profile")


class WeightEntry(Base):
    __tablename__ = "weight_history"
    # AUTOINCREMENT keeps SQLite from handing out the id of a deleted last row.
    __table_args__ = (
        Index("idx_weight_history_user_date", "user_id", "date"),
        {"sqlite_autoincrement": True},
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    date = Column(DateTime, nullable=False)
    weight_kg = Column(Float, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    user = relationship("User", back_populates="weight_entries")


class GlucoseLog(Base):
    __tablename__ = "glucose_logs"
    __table_args__ = (
        Index("idx_glucose_logs_user_timestamp", "user_id", "timestamp"),
        {"sqlite_autoincrement": True},
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    timestamp = Column(DateTime, nullable=False)
    meal_type = Column(Text, nullable=False)  # Breakfast | Lunch | Dinner | Snack | Fasting
    glycemia = Column(Float, nullable=False)  # g/L
    dosage = Column(Float, nullable=False, default=0)  # insulin units
    created_at = Column(DateTime, default=datetime.utcnow)

    user = relationship("User", back_populates="glucose_logs")
