"""
SMC Structure Engine - HTTP interface
FastAPI request/response surface: candles in, analysis out
"""
import asyncio
import logging
import os
import time
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException, Request
from pydantic import BaseModel, Field

from smc_config import EngineConfig, load_config

from ..analyzer import analyze_many, analyze_market
from ..data_loader import InvalidInputError

logger = logging.getLogger(__name__)

ENGINE_CONFIG_PATH = os.environ.get('SMC_ENGINE_CONFIG', 'config/engine.yaml')
MAX_BATCH_CONCURRENCY = 4


class CandleModel(BaseModel):
    timestamp: int
    open: float
    high: float
    low: float
    close: float
    volume: Optional[float] = None


class AnalyzeRequest(BaseModel):
    candles: List[CandleModel] = Field(..., min_length=1)
    config: Optional[Dict[str, Any]] = None


class BatchAnalyzeRequest(BaseModel):
    universe: Dict[str, List[CandleModel]]
    config: Optional[Dict[str, Any]] = None


class EngineState:
    def __init__(self, config_path: str = ENGINE_CONFIG_PATH):
        self.config_path = config_path
        self.config: EngineConfig = load_config(config_path)

    def effective_config(self, overrides: Optional[Dict[str, Any]]) -> EngineConfig:
        """Apply per-request overrides on top of the loaded configuration"""
        if not overrides:
            return self.config

        unknown = set(overrides) - set(self.config.to_dict())
        if unknown:
            raise HTTPException(status_code=422, detail=f"Unknown config keys: {sorted(unknown)}")

        config = EngineConfig.from_dict({**self.config.to_dict(), **overrides})
        errors = config.validate()
        if errors:
            raise HTTPException(status_code=422, detail=errors)
        return config


app = FastAPI(
    title="SMC Structure Engine",
    description="Smart Money Concepts market-structure analysis",
    version="1.0.0"
)

engine_state = EngineState()


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log every request with its status and duration"""
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time
    logger.info(f"{request.method} {request.url.path} -> {response.status_code} in {process_time:.3f}s")
    return response


def _candle_rows(candles: List[CandleModel]) -> List[Dict[str, Any]]:
    return [candle.model_dump() for candle in candles]


@app.get("/api/health")
async def health():
    return {"status": "ok"}


@app.get("/api/config")
async def get_engine_config():
    """Effective engine configuration"""
    return engine_state.config.to_dict()


@app.post("/api/analyze")
async def analyze(request: AnalyzeRequest):
    """Analyze one candle sequence"""
    config = engine_state.effective_config(request.config)
    try:
        result = await asyncio.to_thread(analyze_market, _candle_rows(request.candles), config)
    except InvalidInputError as e:
        logger.warning(f"Rejected candles: {e}")
        raise HTTPException(status_code=422, detail=str(e))
    return result.to_dict()


@app.post("/api/analyze/batch")
async def analyze_batch(request: BatchAnalyzeRequest):
    """Analyze several symbols concurrently"""
    config = engine_state.effective_config(request.config)
    universe = {symbol: _candle_rows(candles) for symbol, candles in request.universe.items()}
    try:
        results = await analyze_many(universe, config, max_concurrency=MAX_BATCH_CONCURRENCY)
    except InvalidInputError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return {symbol: result.to_dict() for symbol, result in results.items()}


def run(host: str = "0.0.0.0", port: int = 8000) -> None:
    """Serve the API with uvicorn"""
    import uvicorn

    logging.basicConfig(
        level=engine_state.config.log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    uvicorn.run(app, host=host, port=port, log_level=engine_state.config.log_level.lower())
