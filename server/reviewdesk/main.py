import logging
import os
from contextlib import asynccontextmanager

import uvicorn  # type: ignore
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from reviewdesk.api.admin_api import admin_router
from reviewdesk.api.api import router
from reviewdesk.api.auth_api import auth_router
from reviewdesk.api.debug_api import debug_router
from reviewdesk.api.event_api import event_router
from reviewdesk.api.paper_api import paper_router
from reviewdesk.api.review_api import review_router
from reviewdesk.database.config import settings
from reviewdesk.database.database import init_db
from reviewdesk.workflow.errors import WorkflowError
from starlette.exceptions import HTTPException as StarletteHTTPException

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)

load_dotenv()


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Paper submission, reviewer assignment and review decisions for events.",
    version="1.0.0",
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.CLIENT_DOMAIN],
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
    expose_headers=["*"],
    allow_credentials=True,
    max_age=600,  # Cache preflight requests for 10 minutes
)


@app.exception_handler(WorkflowError)
async def workflow_error_handler(request: Request, exc: WorkflowError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code, content={"ok": False, "message": exc.message}
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"ok": False, "message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(
    request: Request, exc: RequestValidationError
):
    errors = exc.errors()
    message = "Invalid request"
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ())[1:])
        message = f"{location}: {first.get('msg')}" if location else str(first.get("msg"))
    return JSONResponse(status_code=400, content={"ok": False, "message": message})


# Include the routers in the main app
app.include_router(router, prefix="/api")
app.include_router(auth_router, prefix="/api/auth")
app.include_router(event_router, prefix="/api/events")
app.include_router(paper_router, prefix="/api/papers")
app.include_router(review_router, prefix="/api/reviews")
app.include_router(admin_router, prefix="/api/admin")
app.include_router(debug_router, prefix="/api/debug")

if __name__ == "__main__":
    port = int(os.getenv("PORT", "8000"))
    log_config = uvicorn.config.LOGGING_CONFIG  # type: ignore
    log_config["formatters"]["access"][
        "fmt"
    ] = "%(asctime)s - %(levelname)s - %(message)s"
    log_config["formatters"]["default"][
        "fmt"
    ] = "%(asctime)s - %(levelname)s - %(message)s"
    uvicorn.run(
        "reviewdesk.main:app",
        host="0.0.0.0",
        port=port,
        log_level="info",
        log_config=log_config,
        forwarded_allow_ips="*",  # Allow all forwarded IPs
        proxy_headers=True,  # Enable proxy headers
    )
