from sqlalchemy import Column, Integer, String, Numeric, Date, DateTime, Text, ForeignKey
from sqlalchemy.orm import declarative_base, relationship
from datetime import datetime, timezone

Base = declarative_base()

ROLE_USER = "user"
ROLE_ADMIN = "admin"
ROLES = (ROLE_USER, ROLE_ADMIN)


def utc_now():
    # Naive UTC, matching the DateTime columns
    return datetime.now(timezone.utc).replace(tzinfo=None)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default=ROLE_USER)
    created_at = Column(DateTime, nullable=False, default=utc_now)

    expenses = relationship("Expense", back_populates="user", cascade="all, delete-orphan")

    def to_dict(self):
        # Password hash never leaves the store layer
        return {
            "_id": self.id,
            "username": self.username,
            "email": self.email,
            "role": self.role,
        }


class Expense(Base):
    __tablename__ = "expenses"

    id = Column(Integer, primary_key=True, autoincrement=True)
    created_at = Column(DateTime, nullable=False, default=utc_now)
    amount = Column(Numeric(12, 2), nullable=False)
    description = Column(Text, nullable=False)
    category = Column(String(255), nullable=False, index=True)
    payment_method = Column(String(50), nullable=False)
    date = Column(Date, nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    user = relationship("User", back_populates="expenses")

    def to_dict(self):
        return {
            "_id": self.id,
            "amount": float(self.amount),
            "description": self.description,
            "category": self.category,
            "paymentMethod": self.payment_method,
            "date": self.date.isoformat(),
            "user": self.user_id,
            "createdAt": self.created_at.isoformat(timespec="seconds") if self.created_at else None,
        }
