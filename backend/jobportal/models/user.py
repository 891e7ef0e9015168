import enum

from sqlalchemy import Column, Date, DateTime, Enum, Integer, String

from jobportal.db.base import Base, utcnow


class Role(str, enum.Enum):
    """The single role representation; tokens carry its string value."""

    APPLICANT = "Applicant"
    MANAGER = "Manager"
    ADMIN = "Admin"


class User(Base):
    """User model for authentication and authorization."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(256), unique=True, index=True, nullable=False)
    username = Column(String(50), unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    role = Column(
        Enum(Role, values_callable=lambda roles: [r.value for r in roles], name="user_role"),
        nullable=False,
        default=Role.APPLICANT,
    )

    # Profile fields (no invariants)
    name = Column(String(20))
    surname = Column(String(20))
    address = Column(String(100))
    birthdate = Column(Date, nullable=True)
    gender = Column(String(20), nullable=True)
    phone_number = Column(String(20), nullable=True)
    image = Column(String(500), nullable=True)  # URL, hosted elsewhere

    created_at = Column(DateTime, default=utcnow)
