"""
Incremental RSI (Relative Strength Index) engine.

Uses Wilder's smoothing method:
- avg = (avg_prev * (n - 1) + current) / n
- RS = avg_gain / avg_loss
- RSI = 100 - (100 / (1 + RS))

The engine is a pure function over explicit state: ``compute`` receives the
full kline history plus the state returned by the previous call and only
processes bars newer than that state. All divisions round half-up to
CALCULATION_SCALE fractional digits inside a private decimal context, so the
same input always yields bit-identical output.
"""

from decimal import Context, Decimal, ROUND_HALF_UP, localcontext
from typing import List, Optional, Sequence, Tuple

from rsicraft.models import EngineState, KLine, RSIPoint
from rsicraft.utils.exceptions import ConfigurationError
from rsicraft.utils.logger import get_logger

CALCULATION_SCALE = 10

ONE_HUNDRED = Decimal(100)
_ZERO = Decimal(0)
_ONE = Decimal(1)
_QUANTUM = Decimal(1).scaleb(-CALCULATION_SCALE)
_CONTEXT = Context(prec=50, rounding=ROUND_HALF_UP)

logger = get_logger("rsicraft.engine")


def validate_period(period: int) -> int:
    """
    Check that ``period`` is an integer >= 1.

    Raises:
        ConfigurationError: If the period is not a positive integer
    """
    if isinstance(period, bool) or not isinstance(period, int):
        raise ConfigurationError(f"RSI period must be an integer, got {period!r}")
    if period < 1:
        raise ConfigurationError(f"RSI period must be >= 1, got {period}")
    return period


def _divide(numerator: Decimal, denominator: Decimal) -> Decimal:
    return (numerator / denominator).quantize(_QUANTUM, rounding=ROUND_HALF_UP)


def _gain_loss(current: KLine, previous: KLine) -> Tuple[Decimal, Decimal]:
    change = current.close - previous.close
    if change > 0:
        return change, _ZERO
    if change < 0:
        return _ZERO, -change
    return _ZERO, _ZERO


def rsi_from_averages(avg_gain: Decimal, avg_loss: Decimal) -> Decimal:
    """RSI for a pair of smoothed averages; a zero average loss gives 100."""
    with localcontext(_CONTEXT):
        if avg_loss == 0:
            return ONE_HUNDRED
        rs = _divide(avg_gain, avg_loss)
        return ONE_HUNDRED - _divide(ONE_HUNDRED, _ONE + rs)


def seed_averages(klines: Sequence[KLine], period: int) -> Tuple[Decimal, Decimal]:
    """
    Simple means of the gains and losses over the first ``period`` differences.

    Uses the differences at indices 1..period, so ``klines`` must hold at
    least ``period + 1`` bars.
    """
    gain_sum = _ZERO
    loss_sum = _ZERO
    with localcontext(_CONTEXT):
        for i in range(1, period + 1):
            gain, loss = _gain_loss(klines[i], klines[i - 1])
            gain_sum += gain
            loss_sum += loss
        period_decimal = Decimal(period)
        return _divide(gain_sum, period_decimal), _divide(loss_sum, period_decimal)


def _resume_index(klines: Sequence[KLine], state: EngineState) -> Optional[int]:
    """
    Index of the first kline newer than ``state.last_timestamp``.

    Returns ``len(klines)`` when there are no new bars and None when the
    buffer cannot be resumed from (no previous bar for the first new one, or
    timestamps that are not strictly increasing from there on).
    """
    try:
        start = next(
            (i for i, kline in enumerate(klines) if kline.timestamp > state.last_timestamp),
            len(klines),
        )
        if start == len(klines):
            return start
        if start == 0:
            logger.warning(
                f"Last processed bar {state.last_timestamp.isoformat()} is no longer "
                "in the buffer, reseeding"
            )
            return None
        for i in range(start, len(klines)):
            if klines[i].timestamp <= klines[i - 1].timestamp:
                logger.warning(
                    f"Kline timestamps are not strictly increasing at index {i}, reseeding"
                )
                return None
    except TypeError as e:
        # naive vs aware timestamps cannot be ordered
        logger.warning(f"Cannot compare kline timestamps with stored state: {e}")
        return None
    return start


def compute(
    klines: Sequence[KLine],
    period: int,
    reset_requested: bool = False,
    prior_state: Optional[EngineState] = None,
) -> Tuple[List[RSIPoint], Optional[EngineState]]:
    """
    Compute new RSI points for ``klines``, resuming from ``prior_state``.

    Args:
        klines: Full kline history ordered by strictly increasing timestamp
        period: RSI period (>= 1)
        reset_requested: Discard ``prior_state`` and reseed from scratch
        prior_state: State returned by the previous call for the same key

    Returns:
        Tuple of (points, new_state). When no bar can be processed (not
        enough data, or no bars newer than the prior state) points is empty
        and ``prior_state`` is returned untouched.

    Raises:
        ConfigurationError: If ``period`` is not an integer >= 1
    """
    validate_period(period)

    if len(klines) < period:
        logger.debug(f"Insufficient data: {len(klines)} klines for period {period}")
        return [], prior_state

    start = None
    if reset_requested:
        logger.debug(f"Reset requested, reseeding RSI({period})")
    elif prior_state is None:
        logger.debug(f"No prior state, seeding RSI({period})")
    elif not isinstance(prior_state, EngineState) or not prior_state.is_valid_for(period):
        logger.debug(f"Prior state is not valid for RSI({period}), reseeding")
    else:
        start = _resume_index(klines, prior_state)
        if start == len(klines):
            return [], prior_state
        avg_gain = prior_state.avg_gain
        avg_loss = prior_state.avg_loss

    if start is None:
        if len(klines) <= period:
            logger.debug(f"Insufficient data to seed RSI({period}) from {len(klines)} klines")
            return [], prior_state
        avg_gain, avg_loss = seed_averages(klines, period)
        start = period

    points: List[RSIPoint] = []
    with localcontext(_CONTEXT):
        period_decimal = Decimal(period)
        weight = Decimal(period - 1)
        for i in range(start, len(klines)):
            gain, loss = _gain_loss(klines[i], klines[i - 1])

            avg_gain = _divide(avg_gain * weight + gain, period_decimal)
            avg_loss = _divide(avg_loss * weight + loss, period_decimal)

            points.append(RSIPoint(klines[i].timestamp, rsi_from_averages(avg_gain, avg_loss)))

    new_state = EngineState(
        avg_gain=avg_gain,
        avg_loss=avg_loss,
        last_timestamp=klines[-1].timestamp,
        period=period,
    )
    logger.debug(
        f"RSI({period}) processed {len(points)} bars up to {new_state.last_timestamp.isoformat()}"
    )
    return points, new_state
