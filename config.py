# config.py
import copy
import json

from cache import validate_geometry
from errors import ConfigurationError
from report import RESULTS_FILE

DEFAULT_CONFIG = {
    "cache": {
        "associativity": 1,
        "block_offset_bits": 4,
        "set_index_bits": 4,
    },
    "simulation": {
        "trace_file": None,
        "verbose": False,
    },
    "output": {
        "results_file": RESULTS_FILE,
        "results_dir": "results",
        "save_summary": False,
        "plots": False,
        "outcome_plot": "results/outcomes.png",
        "hitmiss_plot": "results/hit_miss_rate.png",
        "occupancy_plot": "results/set_occupancy.png",
    },
    "workload": {
        "num_requests": 10000,
        "working_set_kb": 64,
        "line_size_bytes": 64,
        "access_pattern": "mixed",
        "instruction_ratio": 0.0,
        "modify_ratio": 0.1,
        "read_ratio": 0.6,
        "random_seed": None,
    },
}


def _merge(base, extra):
    for key, value in extra.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _merge(base[key], value)
        else:
            base[key] = value
    return base


def load_config(path=None):
    """
    Read a JSON config file on top of DEFAULT_CONFIG.
    With no path the defaults are returned as they are.
    """
    cfg = copy.deepcopy(DEFAULT_CONFIG)
    if path is None:
        return cfg
    try:
        with open(path, "r") as f:
            data = json.load(f)
    except OSError as e:
        raise ConfigurationError(f"cannot read config file {path}: {e.strerror or e}") from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"config file {path} is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"config file {path} must contain a JSON object")
    return _merge(cfg, data)


def apply_overrides(cfg, args):
    """Command-line values win over the config file. None means not given."""
    overrides = {
        ("cache", "set_index_bits"): getattr(args, "s", None),
        ("cache", "associativity"): getattr(args, "E", None),
        ("cache", "block_offset_bits"): getattr(args, "b", None),
        ("simulation", "trace_file"): getattr(args, "t", None),
    }
    for (section, key), value in overrides.items():
        if value is not None:
            cfg[section][key] = value
    if getattr(args, "v", False):
        cfg["simulation"]["verbose"] = True
    if getattr(args, "plots", False):
        cfg["output"]["plots"] = True
    return cfg


def validate_config(cfg, require_trace=True):
    cache_cfg = cfg["cache"]
    validate_geometry(
        cache_cfg.get("associativity"),
        cache_cfg.get("block_offset_bits"),
        cache_cfg.get("set_index_bits"),
    )
    verbose = cfg["simulation"].get("verbose", False)
    if not isinstance(verbose, bool):
        raise ConfigurationError(f"simulation.verbose must be true or false, got {verbose!r}")
    if require_trace and not cfg["simulation"].get("trace_file"):
        raise ConfigurationError("no trace file given (use -t or simulation.trace_file)")
    return cfg
