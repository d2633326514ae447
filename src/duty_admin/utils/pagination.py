# src/duty_admin/utils/pagination.py
from __future__ import annotations

import math
from typing import Any, Dict, Optional

from fastapi import Query
from fastapi.encoders import jsonable_encoder

from src.duty_admin.config import settings


class PageParams:
    """page/size query parameters shared by every list endpoint."""

    def __init__(
        self,
        page: int = Query(1, ge=1),
        size: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    ):
        self.page = page
        self.size = size

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.size


def envelope(data: Any = None, **extra: Any) -> Dict[str, Any]:
    return jsonable_encoder({"success": True, "data": data, **extra})


def paginated(data: Any, total: int, params: PageParams, **extra: Any) -> Dict[str, Any]:
    pages = math.ceil(total / params.size) if params.size else 1
    return envelope(
        data,
        totalItems=total,
        totalPages=pages,
        currentPage=params.page,
        pageSize=params.size,
        **extra,
    )


def message(text: str, data: Optional[Any] = None) -> Dict[str, Any]:
    return envelope(data, message=text)
