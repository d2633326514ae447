# src/duty_admin/models/duty/duty_roster.py
from sqlalchemy import Column, Integer, DateTime, ForeignKey, UniqueConstraint, Index, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.duty_admin.models.duty.weekly import WeeklySlotsMixin
from src.duty_admin.utils.database import Base
from src.duty_admin.utils.timezone import now_local

# NULLs never collide in a unique constraint, so zone-level and scope-less
# rosters get their own partial unique indexes.
_ZONE_LEVEL = "mehfil_directory_id IS NULL"
_NO_SCOPE = "zone_id IS NULL AND mehfil_directory_id IS NULL"

class DutyRoster(WeeklySlotsMixin, Base):
    __tablename__ = "duty_roster"
    __table_args__ = (
        UniqueConstraint("user_id", "zone_id", "mehfil_directory_id", name="uq_duty_roster_scope"),
        Index(
            "uq_duty_roster_zone_level", "user_id", "zone_id", unique=True,
            postgresql_where=text(_ZONE_LEVEL), sqlite_where=text(_ZONE_LEVEL),
        ),
        Index(
            "uq_duty_roster_no_scope", "user_id", unique=True,
            postgresql_where=text(_NO_SCOPE), sqlite_where=text(_NO_SCOPE),
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("user_info.id", ondelete="CASCADE"), nullable=False, index=True
    )
    zone_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("zone.id", ondelete="RESTRICT"), nullable=True, index=True
    )
    mehfil_directory_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("mehfil_directory.id", ondelete="RESTRICT"), nullable=True, index=True
    )

    created_by = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_local, nullable=False)
    updated_by = Column(Integer, nullable=True)
    updated_at = Column(DateTime(timezone=True), default=now_local, onupdate=now_local, nullable=False)

    user = relationship("User", lazy="joined")
    mehfil = relationship("MehfilDirectory", lazy="joined")

    def __repr__(self) -> str:
        return f"<DutyRoster {self.id} user={self.user_id} zone={self.zone_id} mehfil={self.mehfil_directory_id}>"
