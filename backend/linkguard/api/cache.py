from typing import Optional
from fastapi import APIRouter, Depends
from pydantic import BaseModel

from linkguard.core.engine import LinkAnalyzer, get_analyzer
from linkguard.models.schemas import EngineStats, SweepResult

router = APIRouter(tags=["cache"])


class SweepRequest(BaseModel):
    now: Optional[int] = None  # epoch ms; defaults to the engine clock


@router.post("/cache/sweep", response_model=SweepResult)
def sweep(body: Optional[SweepRequest] = None, analyzer: LinkAnalyzer = Depends(get_analyzer)):
    """
    Active eviction pass, normally driven by the hourly timer. Safe to call
    repeatedly; a second call with nothing new to expire evicts 0.
    """
    evicted = analyzer.sweep_cache(body.now if body else None)
    return SweepResult(evicted=evicted, remaining=len(analyzer.cache))


@router.get("/stats", response_model=EngineStats)
def stats(analyzer: LinkAnalyzer = Depends(get_analyzer)):
    return analyzer.stats()
