from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.health import router as health_router
from app.api.root import router as root_router
from app.api.questions import router as questions_router
from app.api.responses import router as responses_router
from app.api.cycles import router as cycles_router
from app.api.audit import router as audit_router
from app.core.config import settings
from app.core.errors import register_exception_handlers
from app.core.logging import setup_logging

setup_logging(settings.LOG_LEVEL, json_logs=settings.LOG_JSON)

app = FastAPI(title="Newsletter Console")

# CORS middleware for frontend access
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(root_router)
app.include_router(health_router)
app.include_router(questions_router)
app.include_router(responses_router)
app.include_router(cycles_router)
app.include_router(audit_router)
