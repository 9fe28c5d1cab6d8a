"""
Tests for configuration validation and serialisation.
"""
import numpy as np
import pytest

from brknn import BRkNNClassifier
from brknn.config import BRkNNConfig, as_threshold_list
from brknn.exceptions import ConfigurationError


class TestValidation:
    def test_defaults(self):
        cfg = BRkNNConfig()
        assert cfg.n_neighbors == 10
        assert cfg.policy == "threshold"
        assert cfg.distance_weighting == "none"
        assert cfg.max_k == 10

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"n_neighbors": 0},
            {"cv_max_k": -1},
            {"n_labels": 0},
            {"policy": "majority"},
            {"distance_weighting": "gaussian"},
            {"n_labels": 2, "thresholds": [0.5]},
        ],
    )
    def test_invalid_settings(self, kwargs):
        with pytest.raises(ConfigurationError):
            BRkNNConfig(**kwargs)

    def test_configuration_error_is_value_error(self):
        with pytest.raises(ValueError):
            BRkNNClassifier(n_neighbors=-3)

    def test_cv_max_k_overrides_n_neighbors(self):
        assert BRkNNConfig(n_neighbors=3, cv_max_k=8).max_k == 8

    def test_threshold_vector_broadcasts(self):
        assert BRkNNConfig(threshold=0.3).threshold_vector(3) == [0.3, 0.3, 0.3]
        assert BRkNNConfig(thresholds=[0.1, 0.2]).threshold_vector(2) == [0.1, 0.2]

    def test_as_threshold_list(self):
        assert as_threshold_list(0.4, 2) == [0.4, 0.4]
        with pytest.raises(ConfigurationError):
            as_threshold_list([0.4], 2)

    @pytest.mark.parametrize("value", [np.float32(0.5), np.float64(0.5), np.int64(1)])
    def test_numpy_scalar_broadcasts(self, value):
        assert as_threshold_list(value, 2) == [float(value)] * 2


class TestSerialisation:
    def test_json_round_trip(self, tmp_path):
        cfg = BRkNNConfig(n_neighbors=7, select_k=True, cv_max_k=12, policy="cardinality", thresholds=[0.2, 0.4])
        path = cfg.to_json(tmp_path / "configs" / "brknn.json")
        assert BRkNNConfig.from_json(path) == cfg

    def test_unknown_keys_rejected(self):
        with pytest.raises(ConfigurationError, match="Unknown configuration keys"):
            BRkNNConfig.from_dict({"n_neighbours": 5})

    def test_callable_metric_recorded_by_name(self):
        def chebyshev(a, b):
            return float(np.max(np.abs(a - b)))

        assert BRkNNConfig(metric=chebyshev).to_dict()["metric"] == "chebyshev"

    def test_classifier_from_config(self, two_cluster_data):
        X, Y = two_cluster_data
        cfg = BRkNNConfig(n_neighbors=1, policy="fallback")
        model = BRkNNClassifier.from_config(cfg).fit(X, Y)
        assert model.config == cfg
        np.testing.assert_array_equal(model.predict_one(X[0]).decision, [1, 0])
