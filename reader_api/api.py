from fastapi import Depends, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager, suppress
from datetime import datetime, timezone
from typing import Optional
import asyncio, logging

from . import config
from .cache import ResponseCache
from .errors import ExtractionFailed, ReaderError
from .extractor import get_strategy
from .fallback import RenderProxyClient
from .fetch import Fetcher, make_client
from .schemas import HealthResponse, ReaderFailure, ReaderResponse
from .service import ReaderService

log = logging.getLogger("uvicorn.error")

# -------- Service ----------
_service: Optional[ReaderService] = None


def build_service() -> ReaderService:
    client = make_client()
    return ReaderService(
        fetcher=Fetcher(client),
        proxy=RenderProxyClient(client),
        cache=ResponseCache(),
        strategy=get_strategy(config.EXTRACTOR),
    )


def get_service() -> ReaderService:
    global _service
    if _service is None:
        _service = build_service()
    return _service


async def sweep_forever(cache: ResponseCache, interval: float = config.CACHE_SWEEP_INTERVAL):
    while True:
        await asyncio.sleep(interval)
        remaining = cache.sweep()
        log.info(f"[READER] Cache cleanup: {remaining} entries remaining")


@asynccontextmanager
async def lifespan(app: FastAPI):
    service = get_service()
    sweeper = asyncio.create_task(sweep_forever(service.cache))
    log.info(f"[READER] Reader endpoint: http://{config.READER_HOST}:{config.PORT}/reader")
    try:
        yield
    finally:
        sweeper.cancel()
        with suppress(asyncio.CancelledError):
            await sweeper
        await service.fetcher.client.aclose()


app = FastAPI(title="Reader API", version="1.0.0", lifespan=lifespan)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS, allow_credentials=False,
    allow_methods=["GET"], allow_headers=["*"],
)


@app.exception_handler(ReaderError)
async def reader_error(request: Request, exc: ReaderError):
    return JSONResponse(exc.to_dict(), status_code=exc.status_code)


# -------------------- Endpoints --------------------
@app.get("/health", response_model=HealthResponse)
def health():
    return HealthResponse(timestamp=datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"))


@app.get(
    "/reader",
    tags=["reader"],
    summary="Fetch & extract readable article content by URL",
    response_model=ReaderResponse,
    responses={400: {"model": ReaderFailure}, 502: {"model": ReaderFailure}, 504: {"model": ReaderFailure}},
)
async def reader(url: Optional[str] = Query(None, description="Article URL (http/https)"),
                 service: ReaderService = Depends(get_service)):
    try:
        art = await service.read(url)
    except ReaderError:
        raise
    except Exception as e:
        log.exception("[READER] Error processing request")
        raise ExtractionFailed(str(e) or "Failed to extract content")
    return JSONResponse(art.wire(), headers={"Cache-Control": f"public, max-age={config.CACHE_MAX_AGE}"})
