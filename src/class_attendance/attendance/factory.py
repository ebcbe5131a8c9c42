from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import CheckInMethod
from ..core.exceptions import ValidationError
from ..tokens.codec import TokenCodec
from .strategies.base import CheckInStrategy
from .strategies.beacon_strategy import BeaconStrategy, ProximitySignal
from .strategies.manual_strategy import ManualAbsentStrategy, ManualStrategy
from .strategies.scanned_code_strategy import ScannedCodeStrategy


@dataclass
class CheckInStrategyFactory:
    """Factory Pattern: choose the strategy for a check-in method."""

    codec: TokenCodec
    proximity: Optional[ProximitySignal] = None

    def for_method(self, method: CheckInMethod) -> CheckInStrategy:
        if method == CheckInMethod.BEACON:
            return BeaconStrategy(self.proximity)
        if method == CheckInMethod.SCANNED_CODE:
            return ScannedCodeStrategy(self.codec)
        if method == CheckInMethod.MANUAL:
            return ManualStrategy()
        raise ValidationError(f"{method.value} is not a check-in method")

    def for_absence(self) -> CheckInStrategy:
        return ManualAbsentStrategy()
