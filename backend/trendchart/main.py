from datetime import datetime, timezone
import logging
from typing import Any, List

from fastapi import Body, Depends, FastAPI, HTTPException, Query, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from .config import DEFAULT_SYMBOL, INSTRUMENTS
from .market_data import fetch_ohlc
from .schemas import (
    InstrumentResponse,
    OHLCCandle,
    TrendlineCreate,
    TrendlineRecord,
    TrendlineUpdate,
    ValidationErrorResponse,
)
from .trendline_storage import TrendlineStorage, create_storage

app = FastAPI(title="Trendline Chart API", version="0.1.0")
logger = logging.getLogger(__name__)

app.state.storage = create_storage()

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_storage() -> TrendlineStorage:
    return app.state.storage


def _validation_response(exc: ValidationError) -> JSONResponse:
    errors = [
        {"loc": list(error["loc"]), "msg": error["msg"], "type": error["type"]}
        for error in exc.errors()
    ]
    body = ValidationErrorResponse(message="Invalid trendline data", errors=errors)
    return JSONResponse(status_code=400, content=body.model_dump())


def _failure_response(operation: str) -> JSONResponse:
    return JSONResponse(status_code=500, content={"message": f"Failed to {operation}"})


@app.get("/health")
def health() -> dict:
    return {"status": "ok", "timestamp": datetime.now(tz=timezone.utc).isoformat()}


@app.get("/api/instruments", response_model=List[InstrumentResponse])
def get_instruments() -> List[InstrumentResponse]:
    return [InstrumentResponse(symbol=instrument.symbol, name=instrument.name) for instrument in INSTRUMENTS]


@app.get("/api/trendlines", response_model=List[TrendlineRecord])
def list_trendlines(storage: TrendlineStorage = Depends(get_storage)) -> Any:
    try:
        return storage.list_trendlines()
    except Exception:  # pylint: disable=broad-except
        logger.exception("Error fetching trendlines")
        return _failure_response("fetch trendlines")


@app.post(
    "/api/trendlines",
    response_model=TrendlineRecord,
    status_code=201,
    responses={400: {"model": ValidationErrorResponse}},
)
def create_trendline(payload: Any = Body(...), storage: TrendlineStorage = Depends(get_storage)) -> Any:
    try:
        data = TrendlineCreate.model_validate(payload)
    except ValidationError as exc:
        return _validation_response(exc)
    try:
        return storage.create_trendline(data)
    except Exception:  # pylint: disable=broad-except
        logger.exception("Error creating trendline")
        return _failure_response("create trendline")


@app.patch(
    "/api/trendlines/{trendline_id}",
    response_model=TrendlineRecord,
    responses={400: {"model": ValidationErrorResponse}},
)
def update_trendline(
    trendline_id: int,
    payload: Any = Body(...),
    storage: TrendlineStorage = Depends(get_storage),
) -> Any:
    try:
        updates = TrendlineUpdate.model_validate(payload)
    except ValidationError as exc:
        return _validation_response(exc)
    try:
        record = storage.update_trendline(trendline_id, updates)
    except Exception:  # pylint: disable=broad-except
        logger.exception("Error updating trendline %s", trendline_id)
        return _failure_response("update trendline")
    if record is None:
        return JSONResponse(status_code=404, content={"message": "Trendline not found"})
    return record


@app.delete("/api/trendlines/{trendline_id}", status_code=204)
def delete_trendline(trendline_id: int, storage: TrendlineStorage = Depends(get_storage)) -> Response:
    try:
        success = storage.delete_trendline(trendline_id)
    except Exception:  # pylint: disable=broad-except
        logger.exception("Error deleting trendline %s", trendline_id)
        return _failure_response("delete trendline")
    if not success:
        return JSONResponse(status_code=404, content={"message": "Trendline not found"})
    return Response(status_code=204)


@app.get("/api/ohlc", response_model=List[OHLCCandle])
async def get_ohlc(symbol: str = Query(DEFAULT_SYMBOL, min_length=1, description="Trading pair e.g. BTCUSDT")) -> List[OHLCCandle]:
    try:
        candles = await fetch_ohlc(symbol)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return [OHLCCandle(**candle) for candle in candles]
