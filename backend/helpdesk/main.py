# helpdesk/main.py
import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from slowapi.errors import RateLimitExceeded

from helpdesk.api.router import api_router
from helpdesk.core.config import settings
from helpdesk.core.db import close_db
from helpdesk.core.indexes import startup_tasks
from helpdesk.core.rate_limit import limiter, rate_limit_handler
from helpdesk.services.scheduler import Scheduler

# ---- Logging ----
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# --- CORS: fusiona .env + defaults de desarrollo ---
defaults = {
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:8080",
    "http://127.0.0.1:8080",
}
CORS_ORIGINS = sorted(set((settings.cors_origins or []) + list(defaults)))

scheduler = Scheduler()


# Crea la app
app = FastAPI(title=settings.app_name, version=settings.app_version)

# --- IMPORTANTE: CORS primero ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(GZipMiddleware, minimum_size=1024)

# SlowAPI: limiter usado en la creación de solicitudes
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_handler)

app.include_router(api_router)

# Endpoints de salud
@app.get("/health")
async def health():
    return {"ok": True}

@app.get("/ready")
async def ready():
    return {"ready": True}

# Índices y migraciones en startup (idempotente)
@app.on_event("startup")
async def startup():
    await startup_tasks()
    if settings.scheduler_enabled:
        scheduler.start()
        logger.info("Scheduler iniciado (cada %ss)", scheduler.interval_seconds)

# Shutdown limpio: tareas periódicas y cliente de la DB
@app.on_event("shutdown")
async def shutdown():
    await scheduler.stop()
    await close_db()

# Runner local opcional
if __name__ == "__main__":
    import uvicorn
    uvicorn.run("helpdesk.main:app", reload=True, host="0.0.0.0", port=int(os.getenv("PORT", 8000)))
