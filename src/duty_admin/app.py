# src/duty_admin/app.py
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi import HTTPException as FastAPIHTTPException

from starlette.exceptions import HTTPException as StarletteHTTPException

from src.duty_admin.utils.error_handler import custom_exception_handler
from src.duty_admin.utils.errors import DomainError

from src.duty_admin.routes.duty_types_api import router as duty_types_router
from src.duty_admin.routes.duty_rosters_api import router as duty_rosters_router
from src.duty_admin.routes.coordinators_api import router as coordinators_router
from src.duty_admin.routes.reference_api import router as reference_router


def create_app() -> FastAPI:
    app = FastAPI(title="mehfil-duty-admin", version="1.0")

    # ----------------------------------------------------------
    # CUSTOM ERROR HANDLERS
    # ----------------------------------------------------------
    # 1) Starlette HTTPException (routing 404 etc.)
    app.add_exception_handler(StarletteHTTPException, custom_exception_handler)

    # 2) FastAPI HTTPException (auth, database)
    app.add_exception_handler(FastAPIHTTPException, custom_exception_handler)

    # 3) Validation errors
    app.add_exception_handler(RequestValidationError, custom_exception_handler)

    # 4) NotFound / Locked / Conflict / ScopeMismatch / ValidationFailed
    app.add_exception_handler(DomainError, custom_exception_handler)

    # 5) Catch-all
    app.add_exception_handler(Exception, custom_exception_handler)

    # ----------------------------------------------------------
    # ROUTERS
    # ----------------------------------------------------------
    app.include_router(duty_types_router)
    app.include_router(duty_rosters_router)
    app.include_router(coordinators_router)
    app.include_router(reference_router)
    return app


app = create_app()
