"""
Configuration Loading System

Loads YAML run configuration files, merges them over the built-in defaults
and checks the engine parameters before anything is constructed.
"""

import copy
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .image_model import ColorMode


class ConfigurationError(Exception):
    """Raised when configuration is invalid"""
    pass


DEFAULT_CONFIG: Dict[str, Any] = {
    "image": None,
    "color_mode": "rgb",
    "strategies": {
        "mutator": "rectangle",
        "fitness": "square_distance",
        "crossover": "left_or_right",
    },
    "generation": {
        "size": 100,
        "threads": 1,
        "max_generations": None,
    },
    "random_seed": None,
    "display": {
        "mode": "none",
        "every": None,
    },
    "output": {
        "directory": None,
        "filename_prefix": "",
        "save": "never",
        "each": None,
    },
    "verbose": True,
}

DISPLAY_MODES = ("all", "every", "none")
SAVE_MODES = ("all", "each", "never")
MIN_GENERATION_SIZE = 3

# Sections that must be mappings
CONFIG_SECTIONS = ("strategies", "generation", "display", "output")


def merge_config(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    """
    Recursively merge overrides into a copy of base.

    Nested dictionaries are merged key by key; any other value in overrides
    replaces the value in base.
    """
    merged = copy.deepcopy(base)
    for key, value in (overrides or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_config(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def load_config(config_path: str = "config.yaml") -> Dict[str, Any]:
    """Load configuration from YAML file and merge it over the defaults"""
    try:
        with open(config_path, 'r') as f:
            config = yaml.safe_load(f)
    except FileNotFoundError:
        raise ConfigurationError(f"Configuration file not found: {config_path}")
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in configuration file: {e}")

    if config is None:
        raise ConfigurationError(f"Configuration file is empty: {config_path}")
    if not isinstance(config, dict):
        raise ConfigurationError(f"Configuration root must be a mapping: {config_path}")

    issues = check_sections(config)
    if issues:
        raise ConfigurationError(f"Invalid configuration file {config_path}: " + "; ".join(issues))

    return merge_config(DEFAULT_CONFIG, config)


def resolve_thread_count(threads: Any) -> int:
    """Turn the configured thread count into a number ("auto" = CPU count)"""
    if threads == "auto":
        return os.cpu_count() or 1
    return threads


def is_positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def check_sections(config: Dict[str, Any]) -> List[str]:
    """Report every section that is present but not a mapping (e.g. `generation: null`)"""
    issues = []
    for section in CONFIG_SECTIONS:
        if section in config and not isinstance(config[section], dict):
            issues.append(f"Section '{section}' must be a mapping, got: {config[section]!r}")
    return issues


def validate_config(config: Dict[str, Any]) -> List[str]:
    """
    Validate engine parameters and return list of issues

    Strategy names are checked by the engine, which owns the registries.

    Returns:
        List of validation error messages (empty if valid)
    """
    issues = check_sections(config)
    if issues:
        return issues

    # Color mode
    color_mode = config.get("color_mode")
    try:
        ColorMode(str(color_mode).lower())
    except ValueError:
        issues.append(
            f"Unknown color mode: {color_mode} (expected one of: "
            f"{', '.join(m.value for m in ColorMode)})"
        )

    # Generation
    generation = config.get("generation", {})
    size = generation.get("size")
    if not isinstance(size, int) or isinstance(size, bool) or size < MIN_GENERATION_SIZE:
        issues.append(f"Generation size cannot be smaller than {MIN_GENERATION_SIZE}, got: {size}")

    threads = resolve_thread_count(generation.get("threads"))
    if not is_positive_int(threads):
        issues.append(f"Thread count must be a positive integer or 'auto', got: {generation.get('threads')}")

    max_generations = generation.get("max_generations")
    if max_generations is not None and not is_positive_int(max_generations):
        issues.append(f"max_generations must be a positive integer, got: {max_generations}")

    seed = config.get("random_seed")
    if seed is not None and (not isinstance(seed, int) or isinstance(seed, bool) or seed < 0):
        issues.append(f"random_seed must be a non-negative integer, got: {seed}")

    # Display cadence
    display = config.get("display", {})
    display_mode = display.get("mode")
    if display_mode not in DISPLAY_MODES:
        issues.append(f"Unknown display mode: {display_mode} (expected one of: {', '.join(DISPLAY_MODES)})")
    elif display_mode == "every" and not is_positive_int(display.get("every")):
        issues.append(f"Generation gap must be a positive integer, got display.every: {display.get('every')}")

    # Save cadence and output directory
    output = config.get("output", {})
    save_mode = output.get("save")
    if save_mode not in SAVE_MODES:
        issues.append(f"Unknown save mode: {save_mode} (expected one of: {', '.join(SAVE_MODES)})")
    elif save_mode != "never":
        if save_mode == "each" and not is_positive_int(output.get("each")):
            issues.append(f"Generation gap must be a positive integer, got output.each: {output.get('each')}")

        issues.extend(_check_output_directory(output.get("directory")))

    prefix = output.get("filename_prefix")
    if prefix is not None and not isinstance(prefix, str):
        issues.append(f"filename_prefix must be a string, got: {prefix}")

    return issues


def _check_output_directory(directory: Optional[str]) -> List[str]:
    if not directory:
        return ["Saving requires output.directory to be set"]

    path = Path(directory)
    if not path.exists():
        return [f"Output directory does not exist: {path}"]
    if not path.is_dir():
        return [f"Output path is not a directory: {path}"]
    return []


def print_config_summary(config: Dict[str, Any]):
    """Print a summary of the run configuration"""
    print("=" * 50)
    print("CONFIGURATION SUMMARY")
    print("=" * 50)

    print(f"Target image: {config.get('image', 'N/A')}")
    print(f"Color mode: {config.get('color_mode')}")

    strategies = config.get("strategies", {})
    print(f"\nMutator: {strategies.get('mutator')}")
    print(f"Fitness: {strategies.get('fitness')}")
    print(f"Crossover: {strategies.get('crossover')}")

    generation = config.get("generation", {})
    print(f"\nGeneration size: {generation.get('size')}")
    print(f"Threads: {generation.get('threads')}")
    print(f"Max generations: {generation.get('max_generations') or 'unlimited'}")
    print(f"Random seed: {config.get('random_seed', 'random')}")

    display = config.get("display", {})
    if display.get("mode") == "every":
        print(f"\nDisplay: every {display.get('every')} generations")
    else:
        print(f"\nDisplay: {display.get('mode')}")

    output = config.get("output", {})
    if output.get("save") == "never":
        print("Save: never")
    else:
        cadence = "every generation" if output.get("save") == "all" else f"every {output.get('each')} generations"
        print(f"Save: {cadence} to {output.get('directory')} (prefix '{output.get('filename_prefix')}')")

    issues = validate_config(config)
    if issues:
        print(f"\nValidation Issues ({len(issues)}):")
        for issue in issues:
            print(f"  - {issue}")
    else:
        print("\nConfiguration is valid ✓")

    print("=" * 50)
