#!/usr/bin/env python3
"""Validate stored vehicle documents against the schema."""
import sys
from pathlib import Path

import yaml

from garage import config
from garage.loader import load_schema, validate_record


def validate_vehicle_file(filepath: Path, schema: dict) -> list[str]:
    """Validate a single stored vehicle document. Returns list of errors."""
    errors = []
    try:
        with open(filepath) as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        return [f"YAML parse error: {e}"]

    if not isinstance(data, dict):
        return ["Error: document is not a mapping"]
    if not data.get("owner"):
        errors.append("Error: missing owner")
    for message in validate_record(data.get("vehicle"), schema):
        errors.append(f"Schema validation error: {message}")
    return errors


def main(argv=None):
    """Validate all vehicle documents in the data directory."""
    schema = load_schema()
    args = sys.argv[1:] if argv is None else argv
    vehicles_dir = Path(args[0]) if args else config.DATA_DIR / "vehicles"

    if not vehicles_dir.exists():
        print(f"Error: vehicles directory not found: {vehicles_dir}")
        return 1

    yaml_files = list(vehicles_dir.glob("*.yaml")) + list(vehicles_dir.glob("*.yml"))

    if not yaml_files:
        print(f"Warning: No YAML files found in {vehicles_dir}")
        return 0

    all_valid = True
    for filepath in sorted(yaml_files):
        errors = validate_vehicle_file(filepath, schema)
        if errors:
            print(f"FAIL: {filepath.name}")
            for error in errors:
                print(f"  {error}")
            all_valid = False
        else:
            print(f"OK: {filepath.name}")

    return 0 if all_valid else 1


if __name__ == "__main__":
    sys.exit(main())
