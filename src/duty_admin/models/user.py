# src/duty_admin/models/user.py
from sqlalchemy import Column, String, Integer, Boolean, DateTime, ForeignKey, Table
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.duty_admin.utils.database import Base
from src.duty_admin.utils.timezone import now_local

# Extra regions administered by a region admin (on top of user.region_id)
user_region = Table(
    "user_region",
    Base.metadata,
    Column("user_id", Integer, ForeignKey("user_info.id", ondelete="CASCADE"), primary_key=True),
    Column("region_id", Integer, ForeignKey("region.id", ondelete="CASCADE"), primary_key=True),
)

USER_TYPES = ("karkun", "ehad-karkun", "admin")

class User(Base):
    __tablename__ = "user_info"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(150), nullable=False)
    email: Mapped[str | None] = mapped_column(String(160), nullable=True, index=True)
    phone_number: Mapped[str | None] = mapped_column(String(40), nullable=True)
    user_type: Mapped[str] = mapped_column(String(20), nullable=False, default="karkun")

    # Administrative reach flags
    is_super_admin: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_all_region_admin: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_region_admin: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_zone_admin: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_mehfil_admin: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    region_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("region.id", ondelete="SET NULL"), nullable=True
    )
    zone_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("zone.id", ondelete="SET NULL"), nullable=True, index=True
    )
    mehfil_directory_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("mehfil_directory.id", ondelete="SET NULL"), nullable=True, index=True
    )

    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active")
    created_dt = Column(DateTime(timezone=True), default=now_local, nullable=False)

    extra_regions = relationship("Region", secondary=user_region, lazy="selectin")

    @property
    def region_ids(self) -> frozenset[int]:
        ids = {r.id for r in self.extra_regions}
        if self.region_id is not None:
            ids.add(self.region_id)
        return frozenset(ids)

    def __repr__(self) -> str:
        return f"<User {self.id} {self.name}>"
