# src/duty_admin/models/duty/duty_type.py
from sqlalchemy import Column, String, Integer, Text, Boolean, DateTime, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.duty_admin.utils.database import Base
from src.duty_admin.utils.timezone import now_local

NAME_MAX_LENGTH = 150
DESCRIPTION_MAX_LENGTH = 1000

class DutyType(Base):
    __tablename__ = "duty_type"
    __table_args__ = (
        Index("idx_duty_type_zone_hidden", "zone_id", "is_hidden"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    zone_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("zone.id", ondelete="RESTRICT"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(NAME_MAX_LENGTH), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    # is_editable=False is a hard lock: no update/delete for anyone
    is_editable: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    # hidden types stay visible on existing rosters, not in selection lists
    is_hidden: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_by = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_local, nullable=False)
    updated_by = Column(Integer, nullable=True)
    updated_at = Column(DateTime(timezone=True), default=now_local, onupdate=now_local, nullable=False)

    zone = relationship("Zone", lazy="joined")

    def __repr__(self) -> str:
        return f"<DutyType {self.id} {self.name} zone={self.zone_id}>"
