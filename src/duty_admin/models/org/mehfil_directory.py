# src/duty_admin/models/org/mehfil_directory.py
from sqlalchemy import Column, String, Integer, Text, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from src.duty_admin.utils.database import Base
from src.duty_admin.utils.timezone import now_local

class MehfilDirectory(Base):
    __tablename__ = "mehfil_directory"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    zone_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("zone.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    mehfil_number: Mapped[str] = mapped_column(String(20), nullable=False)
    name: Mapped[str] = mapped_column(String(150), nullable=False)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_dt = Column(DateTime(timezone=True), default=now_local, nullable=False)

    def __repr__(self) -> str:
        return f"<MehfilDirectory {self.id} #{self.mehfil_number}>"
