import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from coursehub_backend.api.course_contents import course_content_router
from coursehub_backend.api.course_members import course_member_router
from coursehub_backend.api.courses import course_router
from coursehub_backend.api.users import user_router
from coursehub_backend.repositories import RepositoryError
from coursehub_backend.settings import settings

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)

logger = logging.getLogger(__name__)

app = FastAPI(title="coursehub")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Total-Count"],
)

@app.exception_handler(RepositoryError)
async def repository_error_handler(request: Request, exc: RepositoryError):
    logger.error(f"{request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})

app.include_router(
    user_router,
    prefix="/users",
    tags=["users"]
)

app.include_router(
    course_router,
    prefix="/courses",
    tags=["courses"]
)

app.include_router(
    course_member_router,
    prefix="/courses",
    tags=["courses", "tutors", "learners"]
)

app.include_router(
    course_content_router,
    prefix="/courses",
    tags=["courses", "contents"]
)

@app.get("/", tags=["system"])
def info():
    return {"name": "coursehub", "status": "ok"}
