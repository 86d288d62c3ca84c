"""
CLI module for the evolution engine.

Handles run configuration loading, validation and dispatching.
"""

from pathlib import Path
from typing import Any, Dict, List

from evoimage.config_loader import ConfigurationError, check_sections, load_config, validate_config

from .crossover import CROSSOVERS
from .fitness import FITNESS_FUNCTIONS
from .mutation import MUTATORS


def load_run_config(config_path: str) -> Dict[str, Any]:
    """
    Load run configuration from YAML file, merged over the defaults.

    Args:
        config_path: Path to run configuration YAML file

    Returns:
        Dictionary containing run configuration

    Raises:
        ConfigurationError: If the file is missing or is not valid YAML
    """
    return load_config(config_path)


def collect_run_config_issues(config: Dict[str, Any]) -> List[str]:
    """
    Check a complete run configuration: target image, strategy names and
    engine parameters.

    Returns:
        List of validation error messages (empty if valid)
    """
    issues = check_sections(config)
    if issues:
        return issues

    image = config.get('image')
    if not image:
        issues.append("Missing required field: 'image'")
    elif not Path(image).is_file():
        issues.append(f"Target image not found: {image}")

    strategies = config.get('strategies', {})
    for key, registry in (('mutator', MUTATORS),
                          ('fitness', FITNESS_FUNCTIONS),
                          ('crossover', CROSSOVERS)):
        name = strategies.get(key)
        if name not in registry:
            issues.append(
                f"Unknown {key}: '{name}'. Must be one of: {', '.join(registry)}"
            )

    issues.extend(validate_config(config))
    return issues


def validate_run_config(config: Dict[str, Any]) -> None:
    """
    Validate a complete run configuration.

    Raises:
        ConfigurationError: If configuration is invalid; the message lists
            every problem found
    """
    issues = collect_run_config_issues(config)
    if issues:
        raise ConfigurationError(
            "Invalid run configuration:\n" + "\n".join(f"  - {issue}" for issue in issues)
        )


def run_config(config: Dict[str, Any]):
    """
    Validate a run configuration and execute it.

    Returns:
        The finished GenerationLoop
    """
    print("Validating configuration...")
    validate_run_config(config)

    from .orchestration import run_evolution
    loop = run_evolution(config)

    print("\n✅ Run completed successfully!")
    return loop


def run_from_config(config_path: str):
    """
    Load run configuration and execute it.

    Args:
        config_path: Path to run configuration YAML file

    Raises:
        ConfigurationError: If config is missing or invalid
        DecodeError: If the target image cannot be read
        WorkerFailure: If an evaluation task fails
    """
    print(f"Loading configuration from: {config_path}")
    config = load_run_config(config_path)
    return run_config(config)
