from sqlalchemy import Column, Integer, String, DateTime, Text, Numeric, JSON, ForeignKey
from sqlalchemy.sql import func
from bossboarding.database import Base


class Machine(Base):
    __tablename__ = "machines"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(String, ForeignKey("customers.id", ondelete="CASCADE"), nullable=False, index=True)

    # Machine number as text; washers 1-99, dryers 101-199, others 201+
    machine_id = Column(String, nullable=False)
    type = Column(String, nullable=False, default="other")  # washer, dryer, other

    manufacturer = Column(String)
    model = Column(String)
    serial_number = Column(String)
    coins_accepted = Column(String)
    pricing = Column(JSON)
    capacity = Column(String)
    price = Column(Numeric(10, 2))
    status = Column(String, default="active")  # active, inactive
    location_in_store = Column(String)
    after_market_upgrades = Column(String)
    notes = Column(Text)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
