# src/duty_admin/models/duty/mehfil_coordinator.py
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.duty_admin.models.duty.weekly import WeeklySlotsMixin
from src.duty_admin.utils.database import Base
from src.duty_admin.utils.timezone import now_local

class MehfilCoordinator(WeeklySlotsMixin, Base):
    __tablename__ = "mehfil_coordinator"
    # one holder per slot; the atomic replace in crud relies on this
    __table_args__ = (
        UniqueConstraint("mehfil_directory_id", "coordinator_type", name="uq_mehfil_coordinator_slot"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    mehfil_directory_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("mehfil_directory.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("user_info.id", ondelete="CASCADE"), nullable=False, index=True
    )
    coordinator_type: Mapped[str] = mapped_column(String(40), nullable=False)

    created_by = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_local, nullable=False)
    updated_by = Column(Integer, nullable=True)
    updated_at = Column(DateTime(timezone=True), default=now_local, onupdate=now_local, nullable=False)

    user = relationship("User", lazy="joined")
    mehfil = relationship("MehfilDirectory", lazy="joined")

    def __repr__(self) -> str:
        return f"<MehfilCoordinator {self.id} mehfil={self.mehfil_directory_id} {self.coordinator_type}>"
