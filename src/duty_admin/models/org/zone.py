# src/duty_admin/models/org/zone.py
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.duty_admin.utils.database import Base
from src.duty_admin.utils.timezone import now_local

class Zone(Base):
    __tablename__ = "zone"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    region_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("region.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(150), nullable=False)
    city: Mapped[str | None] = mapped_column(String(100), nullable=True)

    created_dt = Column(DateTime(timezone=True), default=now_local, nullable=False)

    region = relationship("Region", lazy="joined")

    def __repr__(self) -> str:
        return f"<Zone {self.id} {self.title}>"
