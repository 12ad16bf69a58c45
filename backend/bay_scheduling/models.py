"""SQLAlchemy models for the Schedule Store (bays, projects, schedules)."""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    Boolean, Column, Date, DateTime, Float, ForeignKey, Integer, String, Text, create_engine,
)
from sqlalchemy.orm import declarative_base, sessionmaker

from feature_flags import FeatureFlags

DATABASE_URL = FeatureFlags.get_config().database_url

connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(DATABASE_URL, connect_args=connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def init_db() -> None:
    Base.metadata.create_all(bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


class ManufacturingBayModel(Base):
    __tablename__ = "manufacturing_bays"

    id = Column(Integer, primary_key=True, index=True)
    bay_number = Column(Integer, unique=True, nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    team = Column(String, default="General", index=True)
    staff_count = Column(Integer, default=0)
    assembly_staff_count = Column(Integer, default=0)
    electrical_staff_count = Column(Integer, default=0)
    hours_per_person_per_week = Column(Float, default=40.0)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class ProjectModel(Base):
    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, index=True)
    project_number = Column(String, unique=True, nullable=False, index=True)
    name = Column(String, nullable=False)
    total_hours = Column(Float, nullable=True)
    fab_percentage = Column(Float, default=27.0)
    paint_percentage = Column(Float, default=7.0)
    production_percentage = Column(Float, default=60.0)
    it_percentage = Column(Float, default=7.0)
    ntc_percentage = Column(Float, default=7.0)
    qc_percentage = Column(Float, default=7.0)
    created_at = Column(DateTime, default=datetime.utcnow)


class ManufacturingScheduleModel(Base):
    __tablename__ = "manufacturing_schedules"

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False, index=True)
    bay_id = Column(Integer, ForeignKey("manufacturing_bays.id"), nullable=False, index=True)
    start_date = Column(Date, nullable=False, index=True)
    end_date = Column(Date, nullable=False, index=True)
    total_hours = Column(Float, default=1000.0)
    row = Column(Integer, default=0)
    status = Column(String, default="scheduled")
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
