"""
Configuration models for the SMC structure engine
"""
import math
from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, List


LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')


@dataclass
class EngineConfig:
    """Detection thresholds and feature switches for one analysis run"""

    # Swing detection
    swing_lookback: int = 5

    # Order blocks
    ob_edge_buffer: int = 5
    ob_min_strength: float = 1.5
    max_order_blocks: int = 10

    # Fair value gaps
    max_fvgs: int = 15

    # Liquidity pools
    liquidity_window: int = 20
    liquidity_tolerance: float = 0.001  # 0.1% equal high/low tolerance
    liquidity_min_touches: int = 3
    liquidity_dedup_tolerance: float = 0.002  # 0.2%
    max_liquidity_pools: int = 10

    # Support / resistance
    sr_levels: int = 5
    support_proximity: float = 0.005  # 0.5% bounce zone

    # Opportunity thresholds
    high_rr_threshold: float = 2.0
    high_confidence_threshold: int = 80

    # Feature switches
    track_mitigation: bool = False
    mirror_bearish_setups: bool = False
    validate_input: bool = True

    # Logging
    log_level: str = "INFO"

    def __post_init__(self):
        self.log_level = str(self.log_level).upper()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'EngineConfig':
        """Build a config from a mapping, ignoring unknown keys"""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def _type_errors(self) -> List[str]:
        """Fields whose value does not match the declared type"""
        errors = []
        for f in fields(self):
            value = getattr(self, f.name)
            if f.type is bool:
                valid = isinstance(value, bool)
            elif f.type is int:
                valid = isinstance(value, int) and not isinstance(value, bool)
            elif f.type is float:
                valid = isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)
            else:
                valid = isinstance(value, f.type)

            if not valid:
                errors.append(f"{f.name} must be {f.type.__name__}: {value!r}")
        return errors

    def validate(self) -> List[str]:
        """Validate configuration and return list of errors"""
        # Range checks below assume well-typed values
        errors = self._type_errors()
        if errors:
            return errors

        for name in ('swing_lookback', 'liquidity_window', 'liquidity_min_touches'):
            if getattr(self, name) < 1:
                errors.append(f"{name} must be >= 1: {getattr(self, name)}")

        if self.ob_edge_buffer < 1:
            errors.append(f"ob_edge_buffer must be >= 1: {self.ob_edge_buffer}")

        for name in ('max_order_blocks', 'max_fvgs', 'max_liquidity_pools', 'sr_levels'):
            if getattr(self, name) < 0:
                errors.append(f"{name} cannot be negative: {getattr(self, name)}")

        for name in ('liquidity_tolerance', 'liquidity_dedup_tolerance', 'support_proximity'):
            value = getattr(self, name)
            if not 0 <= value < 1:
                errors.append(f"{name} must be a fraction in [0, 1): {value}")

        if self.ob_min_strength <= 0:
            errors.append(f"ob_min_strength must be positive: {self.ob_min_strength}")

        if not 0 <= self.high_confidence_threshold <= 100:
            errors.append(f"high_confidence_threshold out of range: {self.high_confidence_threshold}")

        if self.log_level not in LOG_LEVELS:
            errors.append(f"Invalid log level: {self.log_level}")

        return errors
