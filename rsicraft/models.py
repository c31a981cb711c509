"""
Data models for the stateful RSI indicator.

KLine is the engine's input bar, RSIPoint its output, and EngineState the
small smoothing state that is carried between invocations.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Optional, Union

from rsicraft.utils.exceptions import CorruptStateError

Number = Union[Decimal, int, float, str]


def to_decimal(value: Number) -> Decimal:
    """Convert a price to Decimal; floats go through ``str`` to keep their printed digits."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise TypeError("Boolean is not a valid price")
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def to_utc(ts: datetime) -> datetime:
    """Convert datetime to timezone-aware UTC datetime."""
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


@dataclass(frozen=True)
class KLine:
    """A single bar of the price series. Only ``timestamp`` and ``close`` feed the RSI."""
    timestamp: datetime
    close: Decimal
    open: Optional[Decimal] = None
    high: Optional[Decimal] = None
    low: Optional[Decimal] = None
    volume: Optional[Decimal] = None

    def __post_init__(self):
        for name in ("close", "open", "high", "low", "volume"):
            value = getattr(self, name)
            if value is not None and not isinstance(value, Decimal):
                object.__setattr__(self, name, to_decimal(value))


@dataclass(frozen=True)
class RSIPoint:
    """RSI value emitted for the bar at ``timestamp``."""
    timestamp: datetime
    value: Decimal


@dataclass(frozen=True)
class EngineState:
    """
    Wilder smoothing state carried between engine invocations.

    Attributes:
        avg_gain: Smoothed average gain (never negative)
        avg_loss: Smoothed average loss (never negative)
        last_timestamp: Timestamp of the last kline the state accounts for
        period: RSI period the state was seeded with
    """

    avg_gain: Decimal
    avg_loss: Decimal
    last_timestamp: datetime
    period: int

    def is_valid_for(self, period: int) -> bool:
        """True if this state can be resumed with ``period``."""
        return (
            self.period == period
            and isinstance(self.avg_gain, Decimal)
            and isinstance(self.avg_loss, Decimal)
            and self.avg_gain.is_finite()
            and self.avg_loss.is_finite()
            and self.avg_gain >= 0
            and self.avg_loss >= 0
            and isinstance(self.last_timestamp, datetime)
        )

    def to_dict(self) -> dict:
        """Convert EngineState to the blob kept in a state slot."""
        return {
            "avgGain": str(self.avg_gain),
            "avgLoss": str(self.avg_loss),
            "lastTimestamp": self.last_timestamp.isoformat(),
            "period": self.period,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "EngineState":
        """
        Create EngineState from a state-slot blob.

        Raises:
            CorruptStateError: If fields are missing or cannot be parsed
        """
        if not isinstance(data, dict):
            raise CorruptStateError(f"State blob must be a dict, got {type(data).__name__}")

        try:
            avg_gain = _parse_decimal(data["avgGain"])
            avg_loss = _parse_decimal(data["avgLoss"])
            last_timestamp = _parse_timestamp(data["lastTimestamp"])
            period = data["period"]
        except KeyError as e:
            raise CorruptStateError(f"State blob is missing field {e}") from e
        except (TypeError, ValueError, InvalidOperation) as e:
            raise CorruptStateError(f"State blob has malformed field: {e}") from e

        if isinstance(period, bool) or not isinstance(period, int) or period < 1:
            raise CorruptStateError(f"State blob has invalid period: {period!r}")
        if not avg_gain.is_finite() or not avg_loss.is_finite() or avg_gain < 0 or avg_loss < 0:
            raise CorruptStateError("State blob averages must be finite and non-negative")

        return cls(
            avg_gain=avg_gain,
            avg_loss=avg_loss,
            last_timestamp=last_timestamp,
            period=period,
        )


def _parse_decimal(value: Any) -> Decimal:
    if isinstance(value, (Decimal, str)) and not isinstance(value, bool):
        return Decimal(value)
    raise TypeError(f"expected decimal string, got {type(value).__name__}")


def _parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        return datetime.fromisoformat(value)
    raise TypeError(f"expected ISO timestamp, got {type(value).__name__}")
