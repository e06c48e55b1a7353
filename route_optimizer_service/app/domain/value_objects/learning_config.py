"""Learning configuration value object.

Tunable constants of the route optimization and learning pipeline.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class LearningConfig:
    """Configuration for route optimization and outcome learning.

    The defaults are heuristic design parameters, not external contracts.

    Attributes:
        baseline_base_factor: Constant part of the baseline factor.
        baseline_distance_cap: Cap of the distance/1000 term of the baseline factor.
        baseline_jitter: Half-width of the random jitter (0 disables it).
        baseline_min_factor: Lower clamp of the baseline factor.
        baseline_max_factor: Upper clamp of the baseline factor.
        baseline_confidence: Confidence of a pure baseline estimate.
        average_speed_kmh: Speed used to project durations.
        fuel_saving_per_km: Fuel saved per km of distance saved.
        reference_consumption_per_km: Fuel per km assumed without a vehicle estimate.
        default_fuel_price: Fuel price used when the request carries none.
        electricity_price: Price per kWh for electric vehicles.
        fallback_factor: Factor of the degraded fallback estimate.
        fallback_confidence: Confidence of the degraded fallback estimate.
        local_blend_weight: Weight of the local (personalized + vehicle) factor
            in the historical blend; the historical weight is 1 minus this.
        similarity_threshold: Minimum similarity for a historical match.
        similarity_top_k: Maximum number of matches used.
        min_similarity_corpus: Corpus size required for similarity prediction.
        min_pattern_corpus: Corpus size required for pattern analysis.
        max_history_size: Maximum number of retained historical routes.
        accuracy_ema_rate: Learning rate of the rolling accuracy.
        retraining_window_days: Length of the recent accuracy window.
        retraining_min_recent: Routes required in the recent window.
        retraining_margin: Accuracy decline that triggers re-derivation.
        retraining_volume: New routes that trigger re-derivation.
        pending_retention_hours: Lifetime of an unreported prediction.
        sweep_interval_minutes: Interval between pending-ledger sweeps.
    """

    # Baseline estimator
    baseline_base_factor: float = 0.08
    baseline_distance_cap: float = 0.15
    baseline_jitter: float = 0.025
    baseline_min_factor: float = 0.05
    baseline_max_factor: float = 0.25
    baseline_confidence: float = 0.75
    average_speed_kmh: float = 80.0
    fuel_saving_per_km: float = 0.08
    reference_consumption_per_km: float = 0.08
    default_fuel_price: float = 1.50
    electricity_price: float = 0.30
    fallback_factor: float = 0.08
    fallback_confidence: float = 0.5

    # Historical blend
    local_blend_weight: float = 0.7
    similarity_threshold: float = 0.6
    similarity_top_k: int = 10
    min_similarity_corpus: int = 5
    min_pattern_corpus: int = 10

    # History and retraining
    max_history_size: int = 1000
    accuracy_ema_rate: float = 0.1
    retraining_window_days: int = 7
    retraining_min_recent: int = 20
    retraining_margin: float = 0.05
    retraining_volume: int = 50

    # Pending ledger
    pending_retention_hours: float = 24.0
    sweep_interval_minutes: float = 60.0

    def __post_init__(self) -> None:
        """Validate learning configuration values."""
        if not 0.0 <= self.baseline_min_factor <= self.baseline_max_factor:
            raise ValueError(
                f"baseline_min_factor must be between 0 and baseline_max_factor, "
                f"got {self.baseline_min_factor}"
            )
        if self.baseline_max_factor > 0.40:
            raise ValueError(
                f"baseline_max_factor must not exceed 0.40, got {self.baseline_max_factor}"
            )
        if self.baseline_jitter < 0:
            raise ValueError(f"baseline_jitter must be non-negative, got {self.baseline_jitter}")
        if self.baseline_distance_cap < 0:
            raise ValueError(
                f"baseline_distance_cap must be non-negative, got {self.baseline_distance_cap}"
            )
        for name in ("baseline_confidence", "fallback_confidence"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be between 0.0 and 1.0, got {value}")
        for name in (
            "average_speed_kmh",
            "default_fuel_price",
            "electricity_price",
            "reference_consumption_per_km",
        ):
            value = getattr(self, name)
            if value <= 0:
                raise ValueError(f"{name} must be positive, got {value}")
        if self.fuel_saving_per_km < 0:
            raise ValueError(
                f"fuel_saving_per_km must be non-negative, got {self.fuel_saving_per_km}"
            )
        if not 0.05 <= self.fallback_factor <= 0.40:
            raise ValueError(
                f"fallback_factor must be between 0.05 and 0.40, got {self.fallback_factor}"
            )
        if not 0.0 <= self.local_blend_weight <= 1.0:
            raise ValueError(
                f"local_blend_weight must be between 0.0 and 1.0, got {self.local_blend_weight}"
            )
        if not 0.0 <= self.similarity_threshold < 1.0:
            raise ValueError(
                f"similarity_threshold must be between 0.0 and 1.0, "
                f"got {self.similarity_threshold}"
            )
        for name in (
            "similarity_top_k",
            "min_similarity_corpus",
            "min_pattern_corpus",
            "max_history_size",
            "retraining_window_days",
            "retraining_min_recent",
            "retraining_volume",
        ):
            value = getattr(self, name)
            if value < 1:
                raise ValueError(f"{name} must be at least 1, got {value}")
        if not 0.0 < self.accuracy_ema_rate <= 1.0:
            raise ValueError(
                f"accuracy_ema_rate must be between 0.0 and 1.0, got {self.accuracy_ema_rate}"
            )
        if not 0.0 <= self.retraining_margin <= 1.0:
            raise ValueError(
                f"retraining_margin must be between 0.0 and 1.0, got {self.retraining_margin}"
            )
        if self.pending_retention_hours <= 0:
            raise ValueError(
                f"pending_retention_hours must be positive, got {self.pending_retention_hours}"
            )
        if self.sweep_interval_minutes <= 0:
            raise ValueError(
                f"sweep_interval_minutes must be positive, got {self.sweep_interval_minutes}"
            )

    @property
    def historical_blend_weight(self) -> float:
        """Weight of the historical factor in the blend."""
        return 1.0 - self.local_blend_weight
