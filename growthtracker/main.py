from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from growthtracker.core.config import CORS_ORIGINS, LOG_LEVEL
from growthtracker.core.db import create_all
from growthtracker.api import assessments, chat, health, records
from growthtracker.auth.routes import router as auth_router
from growthtracker.middleware.request_logger import RequestLoggerMiddleware

# ---- Logging config ---------------------------------------------------------
logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s:%(lineno)d - %(message)s",
)
logger = logging.getLogger("growth.main")
logger.info("Starting GrowthTracker backend with LOG_LEVEL=%s", LOG_LEVEL)

# ---- FastAPI app ------------------------------------------------------------
app = FastAPI(title="GrowthTracker Backend")
app.add_middleware(RequestLoggerMiddleware)

# ---- CORS -------------------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---- Routers ----------------------------------------------------------------
app.include_router(auth_router)                                  # /api/auth/*
for r in records.routers:                                        # /api/diary, /api/stories, ...
    app.include_router(r)
app.include_router(assessments.router)                           # /api/ai-assessments
app.include_router(chat.router, prefix="/api/chat", tags=["Chat"])
app.include_router(chat.ws_router)                               # /ws/chat
app.include_router(health.router, prefix="/health", tags=["Health"])

# ---- Chat (single-process broadcast domain) ---------------------------------
chat.install(app)

logger.info("Routers registered.")


# ---- Lifecycle --------------------------------------------------------------
@app.on_event("startup")
def _startup() -> None:
    # Auto-create tables (safe to run repeatedly)
    create_all()
    logger.info("Startup completed.")


@app.on_event("shutdown")
def _shutdown() -> None:
    drained = app.state.chat_registry.clear()
    logger.info("Shutdown: chat registry drained (%d).", drained)
