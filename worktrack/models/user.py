# worktrack/models/user.py
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime
from worktrack.database import Base


class AccessLevel(Base):
    __tablename__ = "access_levels"

    PUBLIC = 1
    PRIVATE = 2
    DEFAULTS = [(PUBLIC, "public"), (PRIVATE, "private")]

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=True)
    access_level_id = Column(Integer, ForeignKey("access_levels.id"), default=AccessLevel.PUBLIC, nullable=False)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=True)
    hashed_password = Column(String, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    # Notification preferences
    receive_notifications = Column(Boolean, default=True, nullable=False)
    receive_own_notifications = Column(Boolean, default=False, nullable=False)

    # Used by the time parser
    time_zone = Column(String, default="UTC", nullable=False)
    date_format = Column(String, default="%d/%m/%Y", nullable=False)
    time_format = Column(String, default="%H:%M", nullable=False)
    workday_duration = Column(Integer, default=480, nullable=False)  # minutes
    days_per_week = Column(Integer, default=5, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    company = relationship("Company", back_populates="users")
    access_level = relationship("AccessLevel")
    email_addresses = relationship("EmailAddress", back_populates="user", cascade="all, delete-orphan")
    project_permissions = relationship("ProjectPermission", back_populates="user", cascade="all, delete-orphan")

    @property
    def default_email_address(self):
        return next((address for address in self.email_addresses if address.default), None)

    def __repr__(self):
        return f"<User(id={self.id}, name='{self.name}', access_level_id={self.access_level_id})>"


class EmailAddress(Base):
    __tablename__ = "email_addresses"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=True)
    email = Column(String, nullable=False, index=True)
    default = Column(Boolean, default=False, nullable=False)

    user = relationship("User", back_populates="email_addresses")

    @property
    def username_and_email(self) -> str:
        if self.user is not None:
            return f"{self.user.name} <{self.email}>"
        return self.email

    def __repr__(self):
        return f"<EmailAddress(id={self.id}, email='{self.email}')>"
