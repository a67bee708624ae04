"""Database models for the OBD dashboard API."""

from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from obd_dashboard.db.base import Base


def _utcnow() -> datetime:
    # Naive UTC so values compare consistently on SQLite and PostgreSQL.
    return datetime.now(timezone.utc).replace(tzinfo=None)


class User(Base):
    """Dashboard account."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(50), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default="viewer")  # admin, tester, viewer
    status = Column(String(20), nullable=False, default="Active")  # Active, Inactive
    last_login = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)

    # Relationships
    project_links = relationship(
        "UserProject", back_populates="user", cascade="all, delete-orphan",
    )


class Project(Base):
    """A vehicle programme grouping vehicles, tests and reports."""

    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, index=True)
    description = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default="Active")  # Active, Inactive
    manager = Column(String(255), nullable=True)
    created_date = Column(Date, nullable=True)
    created_at = Column(DateTime, default=_utcnow)

    # Relationships
    vehicles = relationship("Vehicle", back_populates="project")
    tests = relationship("DiagnosticTest", back_populates="project")
    reports = relationship("Report", back_populates="project", cascade="all, delete-orphan")
    user_links = relationship(
        "UserProject", back_populates="project", cascade="all, delete-orphan",
    )


class UserProject(Base):
    """Project assignment for a user."""

    __tablename__ = "user_projects"
    __table_args__ = (UniqueConstraint("user_id", "project_id", name="uq_user_project"),)

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    project_id = Column(
        Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True,
    )

    user = relationship("User", back_populates="project_links")
    project = relationship("Project", back_populates="user_links")


class Vehicle(Base):
    """Vehicle registry."""

    __tablename__ = "vehicles"

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="SET NULL"), nullable=True, index=True)
    name = Column(String(255), nullable=True)
    make = Column(String(50), nullable=True)
    model = Column(String(50), nullable=True)
    year = Column(Integer, nullable=True)
    vin = Column(String(17), nullable=True, index=True)
    status = Column(String(20), nullable=False, default="Active")
    created_at = Column(DateTime, default=_utcnow)

    # Relationships
    project = relationship("Project", back_populates="vehicles")
    fault_codes = relationship("FaultCode", back_populates="vehicle", cascade="all, delete-orphan")


class DiagnosticTest(Base):
    """A diagnostic test run against a vehicle."""

    __tablename__ = "diagnostic_tests"

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=True, index=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id", ondelete="CASCADE"), nullable=True, index=True)
    name = Column(String(255), nullable=True)
    status = Column(String(20), nullable=False, default="Running")  # Completed, Running, Failed
    created_at = Column(DateTime, default=_utcnow)

    project = relationship("Project", back_populates="tests")


class FaultCode(Base):
    """Diagnostic trouble code reported by a vehicle."""

    __tablename__ = "fault_codes"

    id = Column(Integer, primary_key=True, index=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id", ondelete="CASCADE"), nullable=False, index=True)
    test_id = Column(Integer, ForeignKey("diagnostic_tests.id", ondelete="SET NULL"), nullable=True)
    code = Column(String(10), nullable=False, index=True)
    description = Column(Text, nullable=True)
    severity = Column(String(20), nullable=False, default="Unknown")  # Critical, High, Medium, Low, Unknown
    status = Column(String(20), nullable=False, default="Active", index=True)  # Active, Pending, Cleared, Permanent
    created_at = Column(DateTime, default=_utcnow, index=True)

    vehicle = relationship("Vehicle", back_populates="fault_codes")


class LiveData(Base):
    """One snapshot of live PID readings."""

    __tablename__ = "live_data"

    id = Column(Integer, primary_key=True, index=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id", ondelete="CASCADE"), nullable=False, index=True)
    timestamp = Column(DateTime, default=_utcnow, index=True)
    speed = Column(Float, nullable=True)
    rpm = Column(Float, nullable=True)
    throttle_position = Column(Float, nullable=True)
    engine_load = Column(Float, nullable=True)
    coolant_temp = Column(Float, nullable=True)
    fuel_pressure = Column(Float, nullable=True)
    intake_pressure = Column(Float, nullable=True)
    maf = Column(Float, nullable=True)
    o2_voltage = Column(Float, nullable=True)
    fuel_level = Column(Float, nullable=True)
    battery_voltage = Column(Float, nullable=True)


class HistoricalData(Base):
    """Long-format historical reading (one value per row)."""

    __tablename__ = "historical_data"

    id = Column(Integer, primary_key=True, index=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id", ondelete="CASCADE"), nullable=False, index=True)
    data_type = Column(String(50), nullable=False, index=True)
    value = Column(Float, nullable=True)
    timestamp = Column(DateTime, default=_utcnow, index=True)


class SensorData(Base):
    """Raw sensor reading."""

    __tablename__ = "sensor_data"

    id = Column(Integer, primary_key=True, index=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id", ondelete="CASCADE"), nullable=False, index=True)
    sensor_type = Column(String(50), nullable=False)
    value = Column(Float, nullable=True)
    timestamp = Column(DateTime, default=_utcnow, index=True)


class OBDReadiness(Base):
    """Readiness monitor snapshot for one ECU module."""

    __tablename__ = "obd_readiness"

    id = Column(Integer, primary_key=True, index=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id", ondelete="CASCADE"), nullable=False, index=True)
    module_id = Column(String(20), nullable=True)
    timestamp = Column(DateTime, default=_utcnow, index=True)
    misfire_monitoring = Column(String(30), nullable=True)
    fuel_system_monitoring = Column(String(30), nullable=True)
    comprehensive_component_monitoring = Column(String(30), nullable=True)
    catalyst_monitoring = Column(String(30), nullable=True)
    heated_catalyst_monitoring = Column(String(30), nullable=True)
    evaporative_system_monitoring = Column(String(30), nullable=True)
    secondary_air_system_monitoring = Column(String(30), nullable=True)
    oxygen_sensor_monitoring = Column(String(30), nullable=True)
    oxygen_sensor_heater_monitoring = Column(String(30), nullable=True)
    egr_system_monitoring = Column(String(30), nullable=True)


class OBDMonitor(Base):
    """Named OBD-II monitor status row."""

    __tablename__ = "obd_monitors"

    id = Column(Integer, primary_key=True, index=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id", ondelete="CASCADE"), nullable=False, index=True)
    monitor_name = Column(String(100), nullable=False)
    status = Column(String(30), nullable=True)
    last_updated = Column(DateTime, default=_utcnow)


class Report(Base):
    """Generated report metadata; content is rendered on download."""

    __tablename__ = "reports"

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    report_type = Column(String(50), nullable=False, default="comprehensive")
    format = Column(String(10), nullable=False, default="pdf")  # pdf, csv, txt
    created_at = Column(DateTime, default=_utcnow, index=True)
    date_from = Column(Date, nullable=True)
    date_to = Column(Date, nullable=True)
    include_vehicles = Column(Boolean, nullable=False, default=True)
    include_fault_codes = Column(Boolean, nullable=False, default=True)
    include_readiness = Column(Boolean, nullable=False, default=True)
    include_live_data = Column(Boolean, nullable=False, default=True)

    project = relationship("Project", back_populates="reports")
