"""
Candle loading, conversion and validation utilities
"""
import logging
from pathlib import Path
from typing import Any, Iterable, List, Union

import numpy as np
import pandas as pd

from .models import Candle

logger = logging.getLogger(__name__)

PRICE_COLUMNS = ['open', 'high', 'low', 'close']
FRAME_COLUMNS = ['timestamp'] + PRICE_COLUMNS + ['volume']

CandleInput = Union[pd.DataFrame, Iterable[Candle], Iterable[dict]]


class InvalidInputError(ValueError):
    """Raised before analysis when the candle sequence is malformed"""


def _to_epoch_ms(values: pd.Series) -> pd.Series:
    """Normalize a timestamp column to integer milliseconds since epoch"""
    if pd.api.types.is_numeric_dtype(values):
        return values.astype('int64')

    parsed = pd.to_datetime(values, utc=True)
    epoch = pd.Timestamp('1970-01-01', tz='UTC')
    return ((parsed - epoch) // pd.Timedelta(milliseconds=1)).astype('int64')


def candles_to_frame(candles: CandleInput) -> pd.DataFrame:
    """
    Convert caller-supplied candles to the engine's DataFrame layout

    Accepts a DataFrame, a sequence of Candle objects or a sequence of dicts
    with timestamp/open/high/low/close[/volume]. The input is never modified.

    Returns:
        DataFrame with columns timestamp (int ms), open, high, low, close, volume
    """
    if isinstance(candles, pd.DataFrame):
        df = candles.copy()
        df.columns = [str(c).lower() for c in df.columns]
    else:
        rows: List[Any] = list(candles)
        if rows and isinstance(rows[0], Candle):
            rows = [c.to_dict() for c in rows]
        df = pd.DataFrame(rows, columns=None if rows else FRAME_COLUMNS)

    missing = {'timestamp', *PRICE_COLUMNS} - set(df.columns)
    if missing:
        raise InvalidInputError(f"Candles must contain columns {FRAME_COLUMNS[:-1]}. Missing: {sorted(missing)}")

    if 'volume' not in df.columns:
        df['volume'] = np.nan

    df = df[FRAME_COLUMNS].reset_index(drop=True)
    if df.empty:
        return df.astype({'timestamp': 'int64', **{c: 'float64' for c in PRICE_COLUMNS + ['volume']}})

    try:
        df['timestamp'] = _to_epoch_ms(df['timestamp'])
    except (ValueError, TypeError, OverflowError) as e:
        raise InvalidInputError(f"Invalid values in column 'timestamp': {e}") from e

    for col in PRICE_COLUMNS + ['volume']:
        try:
            df[col] = df[col].astype('float64')
        except (ValueError, TypeError) as e:
            raise InvalidInputError(f"Invalid values in column '{col}': {e}") from e
    return df


def validate_candles(df: pd.DataFrame) -> None:
    """
    Check a candle frame before any processing starts

    Raises:
        InvalidInputError: empty sequence, timestamps going backwards,
            NaN/infinite/negative prices or high below low
    """
    if df.empty:
        raise InvalidInputError("At least one candle is required")

    prices = df[PRICE_COLUMNS].to_numpy(dtype=float)
    if not np.isfinite(prices).all():
        bad = int((~np.isfinite(prices)).any(axis=1).argmax())
        raise InvalidInputError(f"Non-finite price in candle {bad}")

    if (prices < 0).any():
        bad = int((prices < 0).any(axis=1).argmax())
        raise InvalidInputError(f"Negative price in candle {bad}")

    inverted = df['high'].to_numpy() < df['low'].to_numpy()
    if inverted.any():
        raise InvalidInputError(f"High below low in candle {int(inverted.argmax())}")

    backwards = np.diff(df['timestamp'].to_numpy()) < 0
    if backwards.any():
        raise InvalidInputError(f"Timestamps not chronological at candle {int(backwards.argmax()) + 1}")


def _inconsistent_rows(df: pd.DataFrame) -> np.ndarray:
    """Rows whose open/close fall outside their own high-low range"""
    highs = df['high'].to_numpy(dtype=float)
    lows = df['low'].to_numpy(dtype=float)
    bodies = df[['open', 'close']].to_numpy(dtype=float)
    return (highs < lows) | (bodies.max(axis=1) > highs) | (bodies.min(axis=1) < lows)


def load_csv(path: str) -> pd.DataFrame:
    """
    Read a candle CSV into the engine layout

    Column names are matched case-insensitively; timestamps may be epoch
    milliseconds or any datetime string pandas understands. Rows are
    sorted by time and rows with inconsistent OHLC are dropped.

    Raises:
        FileNotFoundError: no file at `path`
        ValueError: required columns missing, unparsable timestamps or no rows left
    """
    csv_path = Path(path)
    if not csv_path.exists():
        raise FileNotFoundError(f"CSV file not found: {path}")

    df = pd.read_csv(csv_path)
    df.columns = [str(c).strip().lower() for c in df.columns]

    missing = {'timestamp', *PRICE_COLUMNS} - set(df.columns)
    if missing:
        raise ValueError(f"{path} lacks candle columns. Missing: {sorted(missing)}")

    df = df.dropna(subset=['timestamp'])
    try:
        df['timestamp'] = _to_epoch_ms(df['timestamp'])
    except (ValueError, TypeError) as e:
        raise ValueError(f"Could not parse timestamps in {path}: {e}") from e

    df = df.sort_values('timestamp', kind='stable').reset_index(drop=True)
    if df.empty:
        raise ValueError(f"No candles in {path}")

    bad = _inconsistent_rows(df)
    if bad.any():
        logger.warning(f"Dropping {int(bad.sum())} rows with invalid OHLC data from {path}")
        df = df[~bad].reset_index(drop=True)

    logger.info(f"Loaded {len(df)} candles from {path}")
    return candles_to_frame(df)
