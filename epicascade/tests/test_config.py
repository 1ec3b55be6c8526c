"""Unit tests for the run configuration module."""

from __future__ import annotations
import json, sys, tempfile, unittest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent.parent))
from epicascade.conditions import StopCriterion
from epicascade.config import (
    build_seed_sequence, load_config, merge_cli_overrides, stop_criterion,
    validate_config,
)

VALID_CFG = {
    "probability": 0.3,
    "graph": "graph.edges",
    "max_time": 10,
    "seed": 42,
}

def _write_cfg(d):
    f = tempfile.NamedTemporaryFile(suffix=".json", delete=False, mode="w")
    json.dump(d, f); f.close()
    return Path(f.name)


class TestLoadConfig(unittest.TestCase):

    def test_valid_config_loads_with_defaults(self):
        cfg = load_config(_write_cfg(VALID_CFG))
        self.assertEqual(cfg["seed"], 42)
        self.assertEqual(cfg["samples"], 1)
        self.assertEqual(cfg["threads"], 1)
        self.assertFalse(cfg["directed"])

    def test_file_not_found_raises(self):
        with self.assertRaises(FileNotFoundError):
            load_config("/nonexistent/path/config.json")

    def test_not_an_object_raises(self):
        with self.assertRaises(ValueError):
            load_config(_write_cfg([1, 2]))

    def test_unknown_field_raises(self):
        with self.assertRaises(ValueError):
            load_config(_write_cfg({**VALID_CFG, "colour": "red"}))


class TestValidation(unittest.TestCase):

    def test_missing_probability_raises(self):
        bad = {k: v for k, v in VALID_CFG.items() if k != "probability"}
        with self.assertRaises(ValueError):
            validate_config(bad)

    def test_probability_range(self):
        for p in (0.0, -0.5, 1.01):
            with self.assertRaises(ValueError):
                validate_config({**VALID_CFG, "probability": p})
        validate_config({**VALID_CFG, "probability": 1.0})

    def test_graph_or_conditions_required(self):
        bad = {k: v for k, v in VALID_CFG.items() if k != "graph"}
        with self.assertRaises(ValueError):
            validate_config(bad)
        validate_config({**bad, "initial_conditions": "ic.txt"})

    def test_exactly_one_bound(self):
        with self.assertRaises(ValueError):
            validate_config({**VALID_CFG, "max_infected_list": "b.txt"})
        no_bound = {k: v for k, v in VALID_CFG.items() if k != "max_time"}
        with self.assertRaises(ValueError):
            validate_config(no_bound)

    def test_non_positive_max_time_raises(self):
        with self.assertRaises(ValueError):
            validate_config({**VALID_CFG, "max_time": 0})

    def test_samples_and_threads_positive(self):
        for key in ("samples", "threads"):
            with self.assertRaises(ValueError):
                validate_config({**VALID_CFG, key: 0})
            with self.assertRaises(ValueError):
                validate_config({**VALID_CFG, key: 2.5})

    def test_random_infected_needs_condition_list(self):
        with self.assertRaises(ValueError):
            validate_config({**VALID_CFG, "random_infected": True})


class TestOverrides(unittest.TestCase):

    def test_cli_values_win(self):
        merged = merge_cli_overrides(VALID_CFG, {"probability": 0.9, "threads": None})
        self.assertEqual(merged["probability"], 0.9)
        self.assertNotIn("threads", merged)

    def test_cli_bound_replaces_file_bound(self):
        merged = merge_cli_overrides(VALID_CFG, {"max_infected_list": "b.txt"})
        self.assertNotIn("max_time", merged)
        cfg = validate_config(merged)
        self.assertIs(stop_criterion(cfg), StopCriterion.MAX_INFECTED)


class TestDerived(unittest.TestCase):

    def test_stop_criterion_from_bound_key(self):
        self.assertIs(stop_criterion(VALID_CFG), StopCriterion.MAX_TIME)
        cfg = {**VALID_CFG, "max_time": None, "max_time_list": "a.txt"}
        self.assertIs(stop_criterion(cfg), StopCriterion.MAX_TIME)

    def test_seed_sequence_reproducible(self):
        a = build_seed_sequence(VALID_CFG).generate_state(4)
        b = build_seed_sequence(VALID_CFG).generate_state(4)
        self.assertEqual(a.tolist(), b.tolist())

    def test_entropy_seed_when_absent(self):
        ss = build_seed_sequence({})
        self.assertIsNotNone(ss.entropy)


if __name__ == "__main__":
    unittest.main()
