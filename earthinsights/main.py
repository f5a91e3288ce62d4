import logging
import time

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .core.config import settings
from .core.errors import EarthInsightsError
from .routers import briefing, context, imagery, nasa, search, time_travel
from .utils.time import elapsed_ms

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.app_name)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def stamp_start(request: Request, call_next):
    request.state.started_at = time.perf_counter()
    return await call_next(request)


def _started_at(request: Request) -> float:
    return getattr(request.state, "started_at", time.perf_counter())


@app.exception_handler(EarthInsightsError)
async def earth_insights_error(request: Request, exc: EarthInsightsError):
    body = exc.to_body()
    body["processingTimeMs"] = elapsed_ms(_started_at(request))
    logger.warning("%s %s -> %d %s: %s", request.method, request.url.path, exc.status_code, exc.title, exc.details)
    return JSONResponse(status_code=exc.status_code, content=body)


@app.exception_handler(RequestValidationError)
async def request_validation_error(request: Request, exc: RequestValidationError):
    details = [
        {"field": ".".join(str(p) for p in err["loc"] if p != "body"), "message": err["msg"]}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid input", "details": details, "processingTimeMs": elapsed_ms(_started_at(request))},
    )


@app.exception_handler(Exception)
async def unexpected_error(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "details": str(exc),
                 "processingTimeMs": elapsed_ms(_started_at(request))},
    )


app.include_router(search.router)
app.include_router(time_travel.router)
app.include_router(context.router)
app.include_router(briefing.router)
app.include_router(imagery.router)
app.include_router(nasa.router)


@app.get("/")
def root():
    return {
        "name": settings.app_name,
        "env": settings.app_env,
        "message": "OK",
        "endpoints": sorted({r.path for r in app.routes if r.path not in ("/", "/openapi.json")
                             and not r.path.startswith("/docs") and not r.path.startswith("/redoc")}),
    }
