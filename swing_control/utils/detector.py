"""
Apogee detection for a swinging position signal.

Each raw sample goes through: swap/offset normalization -> timing ->
value smoothing -> speed -> speed smoothing -> apogee lock / rearm.

Sign convention: negative values are the "front" side, zero and positive
values are the "back" side. Speed is (previous smoothed value - current value)
per ms, so it points back toward the centre. An apogee on a side fires once
the signal is outside inert_range on that side and heading back fast enough.
The side then stays locked until the other side fires, or until the signal
has dwelt inside reset_range for longer than reset_delay.

Speed deliberately mixes the previous *smoothed* value with the current *raw*
value. This shapes the effective trigger threshold; keep it unless a recorded
session shows it misfires.
"""

import math
import time
from dataclasses import asdict, dataclass
from typing import Callable, Optional

from loguru import logger

from utils.averager import WindowedAverager
from utils.config import DetectorConfig

FRONT = "front"
BACK = "back"


def side_of(value: float) -> str:
    return FRONT if value < 0 else BACK


def _sign(x: float) -> int:
    if x > 0:
        return 1
    if x < 0:
        return -1
    return 0  # also nan


def _rate(delta: float, delta_time: float) -> float:
    if delta_time == 0:
        # duplicate timestamp: no ZeroDivisionError, just a degenerate speed
        return math.copysign(math.inf, delta) if delta else math.nan
    return delta / delta_time


def monotonic_ms() -> float:
    return time.monotonic() * 1000.0


@dataclass(frozen=True)
class SwingReading:
    """One processed sample, as handed to the on_value hook."""

    value: float
    abs_value: float
    delta_time: float
    speed: float
    apogee: Optional[str]
    side: str
    smoothed_value: float
    smoothed_speed: float
    locked_apogee_value: Optional[float]

    def to_dict(self) -> dict:
        d = asdict(self)
        return {
            "value": d["value"],
            "absValue": d["abs_value"],
            "deltaTime": d["delta_time"],
            "speed": d["speed"],
            "apogee": d["apogee"],
            "side": d["side"],
            "smoothedValue": d["smoothed_value"],
            "smoothedSpeed": d["smoothed_speed"],
            "lockedApogeeValue": d["locked_apogee_value"],
        }


class SwingDetector:
    def __init__(
        self,
        config: Optional[DetectorConfig] = None,
        on_value: Optional[Callable[[SwingReading], None]] = None,
        clock: Callable[[], float] = monotonic_ms,
    ):
        self.config = config if config is not None else DetectorConfig()
        self.on_value = on_value
        self.clock = clock
        self.reset()

    def reset(self):
        """Forget all transient state. Configuration is kept."""
        self.value_history = WindowedAverager(self.config.value_window)
        self.speed_history = WindowedAverager(self.config.speed_window)
        self.previous_value: Optional[float] = None
        self.previous_timestamp: Optional[float] = None
        self.locked_side: Optional[str] = None
        self.locked_apogee_value: Optional[float] = None
        self.reset_timer_start: Optional[float] = None

    # --- configuration passthrough ---

    @property
    def active(self) -> bool:
        return self.config.active

    @active.setter
    def active(self, value: bool):
        self.config.active = value

    @property
    def swap(self) -> bool:
        return self.config.swap

    @swap.setter
    def swap(self, value: bool):
        self.config.swap = value

    @property
    def offset(self) -> float:
        return self.config.offset

    @offset.setter
    def offset(self, value: float):
        self.config.offset = value

    @property
    def apogee_speed_threshold(self) -> float:
        return self.config.apogee_speed_threshold

    @apogee_speed_threshold.setter
    def apogee_speed_threshold(self, value: float):
        self.config.apogee_speed_threshold = value

    @property
    def inert_range(self) -> float:
        return self.config.inert_range

    @inert_range.setter
    def inert_range(self, value: float):
        self.config.inert_range = value

    @property
    def reset_range(self) -> float:
        return self.config.reset_range

    @reset_range.setter
    def reset_range(self, value: float):
        self.config.reset_range = value

    # --- pipeline ---

    def process_sample(self, raw: float, now: Optional[float] = None) -> Optional[SwingReading]:
        cfg = self.config
        if not cfg.active:
            return None
        if not math.isfinite(raw):
            logger.warning(f"Dropping non-finite sample: {raw!r}")
            return None

        if now is None:
            now = self.clock()

        value = -raw if cfg.swap else raw
        value = value - cfg.offset

        if self.previous_timestamp is None:
            delta_time = math.inf
        else:
            delta_time = now - self.previous_timestamp
        self.previous_timestamp = now

        self.value_history.push(value)
        smoothed_value = self.value_history.mean()

        if self.previous_value is None:
            speed = math.nan
        else:
            speed = _rate(self.previous_value - value, delta_time)
        direction = _sign(speed)

        abs_value = abs(value)
        side = side_of(value)
        side_sign = -1 if side == FRONT else 1

        # nan/inf would stick in the running sum for good
        if math.isfinite(speed):
            self.speed_history.push(speed)
        smoothed_speed = self.speed_history.mean()

        apogee = None
        if abs_value > cfg.inert_range and self.locked_side != side:
            if abs(speed) > cfg.apogee_speed_threshold and direction == side_sign:
                self.locked_side = side
                self.locked_apogee_value = value
                apogee = side
                logger.info(f"apogee: {side} ({value:.3f})")

        if abs_value < cfg.reset_range:
            if self.reset_timer_start is None:
                self.reset_timer_start = now
            if now - self.reset_timer_start > cfg.reset_delay and self.locked_side is not None:
                logger.debug(f"rearmed after {now - self.reset_timer_start:.0f} ms in reset range")
                self.locked_side = None
                self.locked_apogee_value = None
        else:
            self.reset_timer_start = None

        reading = SwingReading(
            value=value,
            abs_value=abs_value,
            delta_time=delta_time,
            speed=speed,
            apogee=apogee,
            side=side,
            smoothed_value=smoothed_value,
            smoothed_speed=smoothed_speed,
            locked_apogee_value=self.locked_apogee_value,
        )
        if self.on_value is not None:
            self.on_value(reading)

        self.previous_value = smoothed_value
        return reading
