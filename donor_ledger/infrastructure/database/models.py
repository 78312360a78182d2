"""SQLAlchemy ORM models for pledges, payments, bonus rules and payment plans"""

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()

Money = Numeric(10, 2, asdecimal=True)
Percentage = Numeric(5, 2, asdecimal=True)
Rate = Numeric(10, 4, asdecimal=True)


class Category(Base):
    """Pledge category; the name decides donation vs tuition"""

    __tablename__ = "category"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(Text, nullable=False, unique=True)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)


class Pledge(Base):
    """Funding commitment that payments reduce"""

    __tablename__ = "pledge"

    id = Column(Integer, primary_key=True, autoincrement=True)
    contact_id = Column(Integer, nullable=False, index=True)
    category_id = Column(Integer, ForeignKey("category.id", ondelete="SET NULL"), nullable=True)
    pledge_date = Column(Date, nullable=False)
    description = Column(Text, nullable=True)
    original_amount = Column(Money, nullable=False)
    currency = Column(Text, nullable=False, default="USD")
    total_paid = Column(Money, nullable=False, default=0)
    balance = Column(Money, nullable=False)
    original_amount_usd = Column(Money, nullable=True)
    total_paid_usd = Column(Money, nullable=False, default=0)
    balance_usd = Column(Money, nullable=True)
    exchange_rate = Column(Rate, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    category = relationship("Category")
    payment_plans = relationship("PaymentPlan", back_populates="pledge", cascade="all, delete-orphan")


class Solicitor(Base):
    """Fundraiser who earns bonuses on assigned payments"""

    __tablename__ = "solicitor"

    id = Column(Integer, primary_key=True, autoincrement=True)
    contact_id = Column(Integer, nullable=False, unique=True)
    solicitor_code = Column(Text, nullable=True, unique=True)
    status = Column(Text, nullable=False, default="active")
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    bonus_rules = relationship("BonusRuleRecord", back_populates="solicitor", cascade="all, delete-orphan")


class BonusRuleRecord(Base):
    """Commission rule for a solicitor"""

    __tablename__ = "bonus_rule"

    id = Column(Integer, primary_key=True, autoincrement=True)
    solicitor_id = Column(Integer, ForeignKey("solicitor.id", ondelete="CASCADE"), nullable=False, index=True)
    rule_name = Column(Text, nullable=False)
    bonus_percentage = Column(Percentage, nullable=False)
    payment_type = Column(Text, nullable=False, default="both")
    min_amount = Column(Money, nullable=True)
    max_amount = Column(Money, nullable=True)
    effective_from = Column(Date, nullable=False)
    effective_to = Column(Date, nullable=True)  # NULL means ongoing
    is_active = Column(Boolean, nullable=False, default=True)
    priority = Column(Integer, nullable=False, default=1, index=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    solicitor = relationship("Solicitor", back_populates="bonus_rules")


class PaymentPlan(Base):
    """Installment plan for paying off a pledge"""

    __tablename__ = "payment_plan"

    id = Column(Integer, primary_key=True, autoincrement=True)
    pledge_id = Column(Integer, ForeignKey("pledge.id", ondelete="CASCADE"), nullable=False, index=True)
    plan_name = Column(Text, nullable=True)
    frequency = Column(Text, nullable=False)
    distribution_type = Column(Text, nullable=False, default="fixed")
    total_planned_amount = Column(Money, nullable=False)
    currency = Column(Text, nullable=False)
    installment_amount = Column(Money, nullable=False)
    number_of_installments = Column(Integer, nullable=False)
    exchange_rate = Column(Rate, nullable=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)
    next_payment_date = Column(Date, nullable=True, index=True)
    installments_paid = Column(Integer, nullable=False, default=0)
    total_paid = Column(Money, nullable=False, default=0)
    total_paid_usd = Column(Money, nullable=False, default=0)
    remaining_amount = Column(Money, nullable=False)
    plan_status = Column(Text, nullable=False, default="active")
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    pledge = relationship("Pledge", back_populates="payment_plans")
    installments = relationship(
        "InstallmentSchedule",
        back_populates="plan",
        cascade="all, delete-orphan",
        order_by="InstallmentSchedule.installment_date",
    )


class InstallmentSchedule(Base):
    """Individual installment of a custom payment plan"""

    __tablename__ = "installment_schedule"
    __table_args__ = (UniqueConstraint("payment_plan_id", "installment_date", name="uq_installment_plan_date"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    payment_plan_id = Column(Integer, ForeignKey("payment_plan.id", ondelete="CASCADE"), nullable=False, index=True)
    installment_date = Column(Date, nullable=False)
    installment_amount = Column(Money, nullable=False)
    currency = Column(Text, nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    plan = relationship("PaymentPlan", back_populates="installments")


class Payment(Base):
    """Payment against a pledge, optionally credited to a solicitor"""

    __tablename__ = "payment"

    id = Column(Integer, primary_key=True, autoincrement=True)
    pledge_id = Column(Integer, ForeignKey("pledge.id", ondelete="CASCADE"), nullable=False, index=True)
    payment_plan_id = Column(Integer, ForeignKey("payment_plan.id", ondelete="SET NULL"), nullable=True, index=True)
    amount = Column(Money, nullable=False)
    currency = Column(Text, nullable=False)
    amount_usd = Column(Money, nullable=True)
    exchange_rate = Column(Rate, nullable=True)
    payment_date = Column(Date, nullable=False, index=True)
    payment_status = Column(Text, nullable=False, default="completed")
    solicitor_id = Column(Integer, ForeignKey("solicitor.id", ondelete="SET NULL"), nullable=True, index=True)
    # Projection of the bonus outcome, written only together with bonus_calculation
    bonus_percentage = Column(Percentage, nullable=True)
    bonus_amount = Column(Money, nullable=True)
    bonus_rule_id = Column(Integer, ForeignKey("bonus_rule.id", ondelete="SET NULL"), nullable=True)
    notes = Column(Text, nullable=True)
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    pledge = relationship("Pledge")
    bonus_calculation = relationship(
        "BonusCalculation",
        back_populates="payment",
        uselist=False,
        cascade="all, delete-orphan",
    )


class BonusCalculation(Base):
    """Audit snapshot of the bonus computed for one payment"""

    __tablename__ = "bonus_calculation"

    id = Column(Integer, primary_key=True, autoincrement=True)
    payment_id = Column(Integer, ForeignKey("payment.id", ondelete="CASCADE"), nullable=False, unique=True)
    solicitor_id = Column(Integer, ForeignKey("solicitor.id", ondelete="CASCADE"), nullable=False, index=True)
    bonus_rule_id = Column(Integer, ForeignKey("bonus_rule.id", ondelete="SET NULL"), nullable=True)
    payment_amount = Column(Money, nullable=False)
    bonus_percentage = Column(Percentage, nullable=False)
    bonus_amount = Column(Money, nullable=False)
    calculated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    is_paid = Column(Boolean, nullable=False, default=False, index=True)
    paid_at = Column(DateTime(timezone=True), nullable=True)
    notes = Column(Text, nullable=True)

    payment = relationship("Payment", back_populates="bonus_calculation")
