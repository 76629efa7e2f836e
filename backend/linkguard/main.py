import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from linkguard.api.cache import router as cache_router
from linkguard.core.config import get_settings
from linkguard.core.engine import LinkAnalyzer, get_analyzer
from linkguard.models.schemas import AnalyzeRequest, AnalyzeResponse

logger = logging.getLogger(__name__)

settings = get_settings()


async def _periodic_sweep(analyzer: LinkAnalyzer, interval_s: float):
    while True:
        await asyncio.sleep(interval_s)
        evicted = analyzer.sweep_cache()
        logger.info(f"Periodic cache sweep evicted {evicted} entries")


@asynccontextmanager
async def lifespan(app: FastAPI):
    analyzer = get_analyzer()
    analyzer.sweep_cache()
    task = asyncio.create_task(_periodic_sweep(analyzer, settings.sweep_interval_minutes * 60))
    logger.info("LinkGuard engine ready")
    yield
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass


app = FastAPI(title="LinkGuard API", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
def health():
    return {"status": "ok"}


@app.post("/analyze", response_model=AnalyzeResponse)
async def analyze_link(req: AnalyzeRequest, analyzer: LinkAnalyzer = Depends(get_analyzer)):
    return await analyzer.handle_async(req)


app.include_router(cache_router)


if __name__ == "__main__":
    import uvicorn
    logging.basicConfig(level=logging.INFO)
    uvicorn.run("linkguard.main:app", host="0.0.0.0", port=8000, reload=False)
