"""
Indicator parameters and settings resolution.

The host hands the indicator a loose ``{name: value}`` mapping keyed by the
parameter names declared here. ``resolve_settings`` merges it over the
defaults and validates it into a ``Settings`` object.
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, List, Mapping, Optional

from rsicraft.models import to_decimal
from rsicraft.utils.config import IndicatorDefaults, get_config
from rsicraft.utils.exceptions import ConfigurationError

PERIOD = "Period"
OVERBOUGHT = "Overbought"
OVERSOLD = "Oversold"
RSI_COLOR = "RSI Color"
BAND_COLOR = "Band Color"

# java.awt.Color uses the same factor
_DARKER_FACTOR = 0.7


class ParameterType(Enum):
    """Parameter value types understood by the host's settings dialog"""
    INTEGER = "integer"
    COLOR = "color"


@dataclass(frozen=True)
class Color:
    """RGBA color, 0-255 per channel."""
    red: int
    green: int
    blue: int
    alpha: int = 255

    def __post_init__(self):
        for channel in (self.red, self.green, self.blue, self.alpha):
            if isinstance(channel, bool) or not isinstance(channel, int) or not 0 <= channel <= 255:
                raise ConfigurationError(f"Invalid color channel value: {channel!r}")

    def darker(self) -> "Color":
        """Darker version of this color, alpha preserved."""
        return Color(
            max(int(self.red * _DARKER_FACTOR), 0),
            max(int(self.green * _DARKER_FACTOR), 0),
            max(int(self.blue * _DARKER_FACTOR), 0),
            self.alpha,
        )

    def to_hex(self) -> str:
        if self.alpha == 255:
            return f"#{self.red:02x}{self.green:02x}{self.blue:02x}"
        return f"#{self.red:02x}{self.green:02x}{self.blue:02x}{self.alpha:02x}"

    @classmethod
    def parse(cls, value: Any) -> "Color":
        """
        Build a Color from a Color, an ``#RRGGBB[AA]`` string or an RGB(A) tuple.

        Raises:
            ConfigurationError: If the value cannot be interpreted as a color
        """
        if isinstance(value, Color):
            return value
        if isinstance(value, str):
            text = value.strip().lstrip("#")
            if len(text) not in (6, 8):
                raise ConfigurationError(f"Invalid color string: {value!r}")
            try:
                channels = [int(text[i:i + 2], 16) for i in range(0, len(text), 2)]
            except ValueError as e:
                raise ConfigurationError(f"Invalid color string: {value!r}") from e
            return cls(*channels)
        if isinstance(value, (tuple, list)) and len(value) in (3, 4):
            return cls(*value)
        raise ConfigurationError(f"Unsupported color value: {value!r}")


@dataclass(frozen=True)
class Parameter:
    """A user-editable indicator parameter."""
    name: str
    type: ParameterType
    default: Any


@dataclass(frozen=True)
class Settings:
    """
    Validated indicator settings.

    Attributes:
        period: RSI period (>= 1)
        overbought: Upper threshold level in [0, 100]
        oversold: Lower threshold level in [0, 100], below ``overbought``
        rsi_color: Color of the RSI polyline
        band_color: Fill color of the threshold band; its darker shade
            draws the threshold lines
    """

    period: int
    overbought: Decimal
    oversold: Decimal
    rsi_color: Color
    band_color: Color

    def as_mapping(self) -> dict:
        """Settings keyed by parameter name, as the host stores them."""
        return {
            PERIOD: self.period,
            OVERBOUGHT: self.overbought,
            OVERSOLD: self.oversold,
            RSI_COLOR: self.rsi_color,
            BAND_COLOR: self.band_color,
        }


def default_parameters(defaults: Optional[IndicatorDefaults] = None) -> List[Parameter]:
    """Parameters declared by the RSI indicator, with their defaults."""
    if defaults is None:
        defaults = get_config().indicator
    return [
        Parameter(PERIOD, ParameterType.INTEGER, defaults.period),
        Parameter(OVERBOUGHT, ParameterType.INTEGER, defaults.overbought),
        Parameter(OVERSOLD, ParameterType.INTEGER, defaults.oversold),
        Parameter(RSI_COLOR, ParameterType.COLOR, Color(156, 39, 176)),  # Purple
        Parameter(BAND_COLOR, ParameterType.COLOR, Color(128, 128, 128, 50)),  # Semi-transparent gray
    ]


def _resolve_period(value: Any) -> int:
    if isinstance(value, bool):
        raise ConfigurationError(f"{PERIOD} must be an integer, got {value!r}")
    if isinstance(value, str):
        try:
            value = int(value.strip())
        except ValueError as e:
            raise ConfigurationError(f"{PERIOD} must be an integer, got {value!r}") from e
    if not isinstance(value, int):
        raise ConfigurationError(f"{PERIOD} must be an integer, got {value!r}")
    if value < 1:
        raise ConfigurationError(f"{PERIOD} must be >= 1, got {value}")
    return value


def _resolve_level(name: str, value: Any) -> Decimal:
    try:
        level = to_decimal(value)
    except (TypeError, ValueError, InvalidOperation) as e:
        raise ConfigurationError(f"{name} must be a number, got {value!r}") from e
    if not level.is_finite() or not 0 <= level <= 100:
        raise ConfigurationError(f"{name} must lie in [0, 100], got {value!r}")
    return level


def resolve_settings(
    raw: Optional[Mapping[str, Any]] = None,
    parameters: Optional[List[Parameter]] = None,
) -> Settings:
    """
    Merge ``raw`` over the parameter defaults and validate the result.

    Args:
        raw: Settings keyed by parameter name; missing keys take defaults
        parameters: Declared parameters (defaults to ``default_parameters()``)

    Returns:
        Validated Settings

    Raises:
        ConfigurationError: If any value is invalid
    """
    if parameters is None:
        parameters = default_parameters()
    values = {param.name: param.default for param in parameters}
    if raw:
        values.update(raw)

    overbought = _resolve_level(OVERBOUGHT, values.get(OVERBOUGHT))
    oversold = _resolve_level(OVERSOLD, values.get(OVERSOLD))
    if oversold >= overbought:
        raise ConfigurationError(
            f"{OVERSOLD} ({oversold}) must be below {OVERBOUGHT} ({overbought})"
        )

    return Settings(
        period=_resolve_period(values.get(PERIOD)),
        overbought=overbought,
        oversold=oversold,
        rsi_color=Color.parse(values.get(RSI_COLOR)),
        band_color=Color.parse(values.get(BAND_COLOR)),
    )
