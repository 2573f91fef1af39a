# storefront/models/payment.py

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from storefront.utils.database import Base

class Payment(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    provider = Column(String, nullable=False)                  # toss | stripe
    provider_payment_id = Column(String, nullable=True, index=True)  # paymentKey / PaymentIntent id
    amount = Column(Integer, nullable=False)
    status = Column(String, nullable=False, default="pending") # pending | paid | failed | refunded
    raw = Column(JSON, nullable=True)                          # 마지막 게이트웨이 응답
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    refunds = relationship("Refund", back_populates="payment", cascade="all, delete-orphan", lazy="selectin")

    @property
    def refunded_amount(self) -> int:
        return sum(r.amount for r in self.refunds)


class Refund(Base):
    __tablename__ = "refunds"

    id = Column(Integer, primary_key=True, index=True)
    payment_id = Column(Integer, ForeignKey("payments.id", ondelete="CASCADE"), nullable=False, index=True)
    amount = Column(Integer, nullable=False)
    reason = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    payment = relationship("Payment", back_populates="refunds")
