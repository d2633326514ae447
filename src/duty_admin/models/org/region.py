# src/duty_admin/models/org/region.py
from sqlalchemy import Column, String, Integer, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from src.duty_admin.utils.database import Base
from src.duty_admin.utils.timezone import now_local

class Region(Base):
    __tablename__ = "region"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(150), nullable=False)

    created_dt = Column(DateTime(timezone=True), default=now_local, nullable=False)

    def __repr__(self) -> str:
        return f"<Region {self.id} {self.name}>"
