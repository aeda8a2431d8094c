import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from yardpass.config import settings
from yardpass.api.v1 import auth, passes, rules, scan_events, parking, users, service
from yardpass.api import ws
from yardpass.services.errors import PassError

# Настройка логирования
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

logger = logging.getLogger(__name__)

app = FastAPI(title="YardPass API", version="1.0.0")

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(PassError)
async def pass_error_handler(request: Request, exc: PassError):
    logger.info(f"{request.method} {request.url.path}: {exc.code} - {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": {"code": exc.code, "message": exc.message}},
    )


# Подключение роутеров
app.include_router(auth.router, prefix="/api/v1/auth", tags=["auth"])
app.include_router(passes.router, prefix="/api/v1", tags=["passes"])
app.include_router(rules.router, prefix="/api/v1", tags=["rules"])
app.include_router(scan_events.router, prefix="/api/v1", tags=["scan-events"])
app.include_router(parking.router, prefix="/api/v1", tags=["parking"])
app.include_router(users.router, prefix="/api/v1", tags=["users"])
app.include_router(service.router, prefix="/service/v1", tags=["service"])
app.include_router(ws.router, tags=["ws"])


@app.get("/health")
def health_check():
    return {"status": "ok"}
