"""
Unit tests for indoor_pdr/tracker/config.py.

Tests cover:
    - Defaults and option name normalization
    - Clamping and substitution with warnings, never errors
    - Detector settings per strategy
    - JSON persistence

Run with: pytest tests/tracker/test_tracker_config.py -v
"""

import json
import tempfile
import unittest
import warnings
from pathlib import Path

import pytest

from indoor_pdr.sensors.step_detection import DetectionAlgorithm, Sensitivity
from indoor_pdr.tracker.config import (
    STEP_LENGTH_MIN,
    TrackerConfig,
    load_config,
    normalize_options,
    save_config,
    split_runtime_options,
)


class TestDefaults(unittest.TestCase):
    """Test suite for default settings."""

    def test_defaults(self) -> None:
        """Test every field defaults to the documented value."""
        config = TrackerConfig()
        assert config.algorithm is DetectionAlgorithm.ADAPTIVE
        assert config.sensitivity is Sensitivity.MEDIUM
        assert config.filter_enabled
        assert config.filter_alpha == 0.8
        assert config.base_threshold == 10.5
        assert config.fixed_threshold == 11.25
        assert config.min_peak_interval_ms == 500.0
        assert config.step_length == 0.65
        assert config.height == 1.6
        assert not config.prominence_check
        assert config.enabled


class TestOptionNames(unittest.TestCase):
    """Test suite for camelCase/snake_case option handling."""

    def test_camel_case(self) -> None:
        """Test platform camelCase names map onto fields."""
        config = TrackerConfig.from_dict({
            'filterAlpha': 0.5,
            'sensitivity': 'HIGH',
            'minPeakInterval': 350,
            'stepLength': 0.7,
            'algorithm': 'threshold',
        })
        assert config.filter_alpha == 0.5
        assert config.sensitivity is Sensitivity.HIGH
        assert config.min_peak_interval_ms == 350.0
        assert config.step_length == 0.7
        assert config.algorithm is DetectionAlgorithm.THRESHOLD

    def test_snake_case(self) -> None:
        """Test snake_case names pass through unchanged."""
        assert normalize_options({'base_threshold': 11.0}) == {'base_threshold': 11.0}

    def test_unknown_option_ignored(self) -> None:
        """Test an unknown option warns and is dropped."""
        with pytest.warns(UserWarning, match="unknown tracker option 'stride'"):
            config = TrackerConfig.from_dict({'stride': 0.7, 'stepLength': 0.8})
        assert config.step_length == 0.8

    def test_unknown_tier_uses_medium(self) -> None:
        """Test an unknown tier at construction warns and uses medium."""
        with pytest.warns(UserWarning, match="sensitivity must be one of"):
            config = TrackerConfig(sensitivity='extreme')
        assert config.sensitivity is Sensitivity.MEDIUM

    def test_unknown_tier_update_keeps_current(self) -> None:
        """Test an unknown tier in an update keeps the current tier."""
        config = TrackerConfig(sensitivity='low')
        with pytest.warns(UserWarning, match="keeping 'low'"):
            updated = config.with_updates({'sensitivity': 'extreme'})
        assert updated.sensitivity is Sensitivity.LOW

    def test_unknown_algorithm_uses_adaptive(self) -> None:
        """Test an unknown algorithm warns and uses adaptive."""
        with pytest.warns(UserWarning, match="algorithm must be one of"):
            config = TrackerConfig(algorithm='zero-crossing')
        assert config.algorithm is DetectionAlgorithm.ADAPTIVE

    def test_split_runtime_options(self) -> None:
        """Test construction-only options are separated from runtime ones."""
        runtime, fixed = split_runtime_options({'stepLength': 0.7, 'height': 1.5})
        assert runtime == {'step_length': 0.7}
        assert fixed == {'height': 1.5}


class TestClamping(unittest.TestCase):
    """Test suite for out-of-range and missing values."""

    def test_filter_alpha_clamped(self) -> None:
        """Test alpha below 0.1 is clamped with a warning."""
        with pytest.warns(UserWarning, match="filter_alpha"):
            config = TrackerConfig(filter_alpha=0.01)
        assert config.filter_alpha == 0.1

    def test_long_stride_kept(self) -> None:
        """Test any positive step length is kept without a warning."""
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            assert TrackerConfig(step_length=1.8).step_length == 1.8
            assert TrackerConfig(step_length=0.15).step_length == 0.15

    def test_non_positive_step_length_floored(self) -> None:
        """Test zero or negative step length is raised to the floor."""
        with pytest.warns(UserWarning, match="step_length"):
            assert TrackerConfig(step_length=0.0).step_length == STEP_LENGTH_MIN
        with pytest.warns(UserWarning, match="step_length"):
            assert TrackerConfig(step_length=-0.5).step_length == STEP_LENGTH_MIN

    def test_missing_step_length_uses_default(self) -> None:
        """Test None and NaN step lengths fall back to the default."""
        with pytest.warns(UserWarning, match="not a usable number"):
            assert TrackerConfig(step_length=None).step_length == 0.65
        with pytest.warns(UserWarning, match="not a usable number"):
            assert TrackerConfig(step_length=float('nan')).step_length == 0.65

    def test_min_peak_interval_clamped(self) -> None:
        """Test a negative interval is clamped to 0."""
        with pytest.warns(UserWarning):
            assert TrackerConfig(min_peak_interval_ms=-10).min_peak_interval_ms == 0.0

    def test_negative_capacity_clamped(self) -> None:
        """Test a negative trajectory capacity becomes 0."""
        with pytest.warns(UserWarning, match="trajectory_capacity"):
            config = TrackerConfig(trajectory_capacity=-1)
        assert config.trajectory_capacity == 0
        assert isinstance(config.trajectory_capacity, int)

    def test_with_updates_is_a_copy(self) -> None:
        """Test with_updates leaves the original untouched."""
        base = TrackerConfig()
        updated = base.with_updates({'prominenceCheck': True})
        assert updated.prominence_check
        assert not base.prominence_check


class TestDetectorSettings(unittest.TestCase):
    """Test suite for detector constructor arguments."""

    def test_adaptive(self) -> None:
        """Test adaptive settings carry floor and tier."""
        settings = TrackerConfig(base_threshold=11.0).detector_settings()
        assert settings['base_threshold'] == 11.0
        assert settings['sensitivity'] is Sensitivity.MEDIUM
        assert 'threshold' not in settings

    def test_threshold(self) -> None:
        """Test fixed-threshold settings carry only the threshold."""
        settings = TrackerConfig(algorithm='threshold', fixed_threshold=12.0).detector_settings()
        assert settings['threshold'] == 12.0
        assert 'base_threshold' not in settings


class TestPersistence(unittest.TestCase):
    """Test suite for JSON save/load."""

    def test_save_and_load(self) -> None:
        """Test a saved configuration loads back equal."""
        config = TrackerConfig(algorithm='threshold', sensitivity='low', step_length=0.8)
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / 'nested' / 'tracker.json'
            save_config(config, path)

            with open(path) as f:
                raw = json.load(f)
            assert raw['algorithm'] == 'threshold'
            assert raw['sensitivity'] == 'low'

            assert load_config(path) == config
