#!/usr/bin/env python3
"""
De-ripping Pipeline Configuration

Loads YAML configuration files and merges them over the built-in defaults.

Usage:
    # Get single value
    python config.py config.yaml --get bias.min_depth

    # Validate configuration
    python config.py config.yaml --validate

    # As Python module
    from deripper.config import load_config, get_nested
    config = load_config("config.yaml")
    evalue = get_nested(config, "search.evalue")
"""

import argparse
import copy
import json
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import yaml


DEFAULT_CONFIG: Dict[str, Any] = {
    "search": {
        "blastn": "blastn",
        "makeblastdb": "makeblastdb",
        "evalue": 1e-10,
        "index_suffixes": [".nhr", ".nin", ".nsq"],
        "extra_args": [],
    },
    "bias": {
        "min_depth": 10,
        "min_ratio": 1.0,
    },
    "output": {
        "suffix": ".deripped",
        "line_width": 80,
    },
    "logging": {
        "level": "INFO",
        "format": "%(asctime)s - %(levelname)s - %(message)s",
    },
}


def merge_config(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """
    Recursively merge ``override`` into a copy of ``base``.

    Examples:
        >>> merge_config({"bias": {"min_depth": 10, "min_ratio": 1.0}}, {"bias": {"min_depth": 5}})
        {'bias': {'min_depth': 5, 'min_ratio': 1.0}}
    """
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_config(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load configuration from a YAML file, merged over DEFAULT_CONFIG.

    Args:
        config_path: Path to YAML configuration file, or None for defaults only

    Returns:
        Dictionary containing configuration values

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If YAML parsing fails
    """
    if config_path is None:
        return copy.deepcopy(DEFAULT_CONFIG)

    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(path, 'r') as f:
        user_config = yaml.safe_load(f)

    if user_config is None:
        return copy.deepcopy(DEFAULT_CONFIG)
    if not isinstance(user_config, dict):
        raise yaml.YAMLError(f"Top level of {config_path} must be a mapping")

    return merge_config(DEFAULT_CONFIG, user_config)


def get_nested(config: Dict[str, Any], key_path: str, default: Any = None) -> Any:
    """
    Get a nested value from config using dot notation.

    Examples:
        >>> config = {"bias": {"min_depth": 10}}
        >>> get_nested(config, "bias.min_depth")
        10
        >>> get_nested(config, "bias.missing", "default")
        'default'
    """
    keys = key_path.split('.')
    value = config

    for key in keys:
        if isinstance(value, dict) and key in value:
            value = value[key]
        else:
            return default

    return value


def validate_config(config: Dict[str, Any]) -> tuple[bool, list[str]]:
    """
    Validate configuration values.

    Returns:
        Tuple of (is_valid, list of error messages)
    """
    errors = []

    for key_path in ("search.blastn", "search.makeblastdb", "output.suffix"):
        if not get_nested(config, key_path):
            errors.append(f"Missing value: {key_path}")

    evalue = get_nested(config, "search.evalue")
    try:
        if float(evalue) <= 0:
            errors.append(f"search.evalue must be > 0, got {evalue}")
    except (ValueError, TypeError):
        errors.append(f"search.evalue must be a number, got {evalue}")

    min_depth = get_nested(config, "bias.min_depth")
    try:
        if int(min_depth) < 0:
            errors.append(f"bias.min_depth must be >= 0, got {min_depth}")
    except (ValueError, TypeError):
        errors.append(f"bias.min_depth must be an integer, got {min_depth}")

    min_ratio = get_nested(config, "bias.min_ratio")
    try:
        float(min_ratio)
    except (ValueError, TypeError):
        errors.append(f"bias.min_ratio must be a number, got {min_ratio}")

    line_width = get_nested(config, "output.line_width")
    try:
        if int(line_width) < 1:
            errors.append(f"output.line_width must be >= 1, got {line_width}")
    except (ValueError, TypeError):
        errors.append(f"output.line_width must be an integer, got {line_width}")

    level = get_nested(config, "logging.level")
    if str(level).upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
        errors.append(f"logging.level must be a standard level name, got {level}")

    suffixes = get_nested(config, "search.index_suffixes")
    if not isinstance(suffixes, list) or not suffixes:
        errors.append("search.index_suffixes must be a non-empty list")

    extra_args = get_nested(config, "search.extra_args", [])
    if not isinstance(extra_args, list):
        errors.append("search.extra_args must be a list")

    return len(errors) == 0, errors


def print_config_summary(config: Dict[str, Any]) -> None:
    """Print a human-readable config summary."""
    print("=" * 60)
    print("De-ripping Configuration Summary")
    print("=" * 60)

    sections = [
        ("Search", [
            ("search.blastn", "blastn"),
            ("search.makeblastdb", "makeblastdb"),
            ("search.evalue", "E-value"),
        ]),
        ("Bias", [
            ("bias.min_depth", "Min Depth"),
            ("bias.min_ratio", "Min Ratio"),
        ]),
        ("Output", [
            ("output.suffix", "Suffix"),
            ("output.line_width", "Line Width"),
        ]),
    ]

    for section_name, fields in sections:
        print(f"\n{section_name}:")
        for key_path, label in fields:
            value = get_nested(config, key_path, "not set")
            print(f"  {label}: {value}")

    print("\n" + "=" * 60)


def main():
    parser = argparse.ArgumentParser(
        description="De-ripping Configuration Parser",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )
    parser.add_argument("config", help="Path to YAML configuration file")
    parser.add_argument("--get", metavar="KEY", help="Get single value using dot notation (e.g., bias.min_depth)")
    parser.add_argument("--validate", action="store_true", help="Validate configuration and report errors")
    parser.add_argument("--json", action="store_true", help="Output as JSON (for --get with complex values)")
    args = parser.parse_args()

    try:
        config = load_config(args.config)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except yaml.YAMLError as e:
        print(f"Error parsing YAML: {e}", file=sys.stderr)
        sys.exit(1)

    if args.get:
        value = get_nested(config, args.get)
        if value is None:
            print(f"Key not found: {args.get}", file=sys.stderr)
            sys.exit(1)
        print(json.dumps(value) if args.json else value)
    elif args.validate:
        is_valid, errors = validate_config(config)
        if is_valid:
            print("Configuration is valid!")
            sys.exit(0)
        print("Configuration errors:", file=sys.stderr)
        for error in errors:
            print(f"  - {error}", file=sys.stderr)
        sys.exit(1)
    else:
        print_config_summary(config)


if __name__ == "__main__":
    main()
