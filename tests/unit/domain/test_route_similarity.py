"""Unit tests for route similarity scoring."""

from datetime import datetime

import pytest
from domain.services import RouteSimilarityScorer, extract_features
from domain.value_objects import RouteFeatures, RouteRequest, TrafficData, WeatherData


def _features(**overrides) -> RouteFeatures:
    values = {
        "distance": 450.0,
        "vehicle_type": "standard",
        "hour_of_day": 9,
        "month": 4,
        "day_of_week": 1,
        "congestion": 0.5,
        "weather_condition": "clear",
        "weather_score": 1.0,
    }
    values.update(overrides)
    return RouteFeatures(**values)


class TestExtractFeatures:
    """Tests for feature extraction."""

    def test_uses_departure_time_when_given(self) -> None:
        """Departure time drives hour, month and weekday."""
        request = RouteRequest(
            distance=300.0,
            departure_time=datetime(2024, 1, 15, 18, 0),
            traffic=TrafficData(congestion=0.9),
            weather=WeatherData(condition="snow", driving_score=0.3),
        )

        features = extract_features(request, datetime(2024, 7, 1, 8, 0))

        assert features.hour_of_day == 18
        assert features.month == 1
        assert features.day_of_week == 0
        assert features.congestion == 0.9
        assert features.weather_condition == "snow"
        assert features.season == "winter"

    def test_falls_back_to_given_time_and_standard_vehicle(self) -> None:
        """Missing departure and vehicle type use neutral values."""
        features = extract_features(RouteRequest(distance=300.0), datetime(2024, 7, 1, 8, 0))

        assert features.hour_of_day == 8
        assert features.month == 7
        assert features.vehicle_type == "standard"


class TestRouteSimilarityScorer:
    """Tests for RouteSimilarityScorer."""

    def test_identical_features_score_one(self) -> None:
        """A route is fully similar to itself."""
        scorer = RouteSimilarityScorer()
        features = _features()
        assert scorer.score(features, features) == pytest.approx(1.0)

    def test_score_is_deterministic(self) -> None:
        """Same inputs always give the same score."""
        scorer = RouteSimilarityScorer()
        candidate = _features(distance=400.0, hour_of_day=17)
        reference = _features(distance=480.0, weather_condition="rain", weather_score=0.6)

        scores = {scorer.score(candidate, reference) for _ in range(10)}
        assert len(scores) == 1

    def test_distance_dimension(self) -> None:
        """Distance closeness is relative to the longer route."""
        scorer = RouteSimilarityScorer()
        scores = scorer.dimension_scores(_features(distance=400.0), _features(distance=500.0))
        assert scores["distance"] == pytest.approx(0.8)

    def test_time_of_day_wraps_around_midnight(self) -> None:
        """23:00 and 01:00 are two hours apart."""
        scorer = RouteSimilarityScorer()
        scores = scorer.dimension_scores(_features(hour_of_day=23), _features(hour_of_day=1))
        assert scores["time_of_day"] == pytest.approx(1.0 - 2 / 12)

    def test_different_weather_uses_score_closeness(self) -> None:
        """Different conditions score half the driving-score closeness."""
        scorer = RouteSimilarityScorer()
        scores = scorer.dimension_scores(
            _features(weather_condition="rain", weather_score=0.6),
            _features(weather_condition="clear", weather_score=1.0),
        )
        assert scores["weather"] == pytest.approx(0.5 * 0.6)

    def test_different_vehicle_and_season(self) -> None:
        """Vehicle type and season are exact matches."""
        scorer = RouteSimilarityScorer()
        score = scorer.score(_features(vehicle_type="truck", month=12), _features())
        assert score == pytest.approx(1.0 - 0.15 - 0.15)

    def test_weights_must_sum_to_one(self) -> None:
        """Custom weights are validated."""
        weights = dict(RouteSimilarityScorer.DEFAULT_WEIGHTS)
        weights["distance"] = 0.5
        with pytest.raises(ValueError, match="sum to 1"):
            RouteSimilarityScorer(weights)

    def test_weights_must_cover_all_dimensions(self) -> None:
        """Every dimension needs a weight."""
        with pytest.raises(ValueError, match="exactly"):
            RouteSimilarityScorer({"distance": 1.0})
