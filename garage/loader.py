"""Wire record parsing, YAML document storage and schema validation."""

from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from jsonschema import Draft7Validator
from loguru import logger

from .calculations import clamp_speed
from .maintenance_record import MaintenanceRecord
from .vehicle import (
    SportPayload,
    TruckPayload,
    Variant,
    Vehicle,
    history_sort_key,
    parse_amount,
)

SCHEMA_PATH = Path(__file__).parent / "schema.yaml"

# Discriminators written by the first version of the garage
LEGACY_TAGS = {
    "CarroBase": Variant.BASE,
    "CarroEsportivo": Variant.SPORT,
    "Caminhao": Variant.TRUCK,
}


def parse_variant_tag(tag: Any) -> Variant:
    """Map a discriminator to a Variant. Unknown or missing tags mean BASE."""
    if not isinstance(tag, str):
        return Variant.BASE
    if tag in LEGACY_TAGS:
        return LEGACY_TAGS[tag]
    try:
        return Variant(tag)
    except ValueError:
        if tag:
            logger.warning(f"Unknown variant tag {tag!r}, using base")
        return Variant.BASE


def record_from_dict(dct: Dict[str, Any]) -> Optional[MaintenanceRecord]:
    """Parse one history entry. Returns None for entries that are not valid."""
    if not isinstance(dct, dict):
        return None
    record = MaintenanceRecord.create(
        dct.get("when"),
        dct.get("serviceType"),
        dct.get("cost", 0),
        dct.get("notes", ""),
    )
    return record if record.is_valid() else None


def vehicle_from_dict(dct: Dict[str, Any]) -> Vehicle:
    """
    Rebuild a Vehicle from its wire record.

    Raises ValidationError when id or model is missing. Bad history
    entries are skipped, the rest of the vehicle is kept.
    """
    variant = parse_variant_tag(dct.get("variantTag"))
    vehicle = Vehicle(
        dct.get("id") or dct.get("_id"),
        dct.get("model"),
        variant,
        color=dct.get("color"),
        image_ref=dct.get("imageRef"),
        plate=dct.get("plate"),
        year=dct.get("year"),
        cnh_expiry=dct.get("cnhExpiry"),
    )
    vehicle.is_on = bool(dct.get("isOn", False))
    vehicle.speed = clamp_speed(parse_amount(dct.get("speed")) or 0, vehicle.max_speed)

    if variant is Variant.SPORT:
        vehicle.payload = SportPayload(dct.get("turboOn", False))
    elif variant is Variant.TRUCK:
        vehicle.payload = TruckPayload(dct.get("cargoCapacity", 0), dct.get("currentCargo", 0))

    history = []
    for entry in dct.get("maintenanceHistory") or []:
        record = record_from_dict(entry)
        if record is None:
            logger.warning(f"Skipping invalid maintenance entry on {vehicle.id}: {entry!r}")
            continue
        history.append(record)
    vehicle.maintenance_history = sorted(history, key=history_sort_key, reverse=True)
    return vehicle


# =============================================================================
# YAML documents
# =============================================================================


def load_document(filename: Union[str, Path]) -> Dict[str, Any]:
    """Load a YAML document. A missing or empty file is an empty dict."""
    path = Path(filename)
    if not path.exists():
        return {}
    with open(path, "r") as fp:
        return yaml.load(fp, Loader=yaml.SafeLoader) or {}


def save_document(filename: Union[str, Path], data: Dict[str, Any]) -> None:
    """Write a YAML document, creating parent directories as needed."""
    path = Path(filename)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as fp:
        yaml.dump(
            data,
            fp,
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False,
            width=120,
        )


def save_vehicle_document(
    filename: Union[str, Path], owner: str, record: Dict[str, Any]
) -> None:
    """Store one vehicle record together with its owning account."""
    save_document(filename, {"owner": owner, "vehicle": record})


def load_vehicle_document(filename: Union[str, Path]) -> Optional[Dict[str, Any]]:
    """
    Load a stored vehicle document.

    Returns {"owner": ..., "vehicle": {...}} or None when the file is missing.
    """
    return load_document(filename) or None


def delete_vehicle_document(filename: Union[str, Path]) -> None:
    """Remove a vehicle document from disk."""
    Path(filename).unlink()


# =============================================================================
# Schema
# =============================================================================


def load_schema() -> dict:
    """Load the JSON schema for wire vehicle records."""
    with open(SCHEMA_PATH) as f:
        return yaml.safe_load(f)


def validate_record(data: Any, schema: Optional[dict] = None) -> List[str]:
    """Validate a wire record. Returns a list of readable errors (empty when valid)."""
    validator = Draft7Validator(schema or load_schema())
    errors = []
    for error in sorted(validator.iter_errors(data), key=lambda e: [str(p) for p in e.path]):
        location = ".".join(str(p) for p in error.path)
        if location:
            errors.append(f"{location}: {error.message}")
        else:
            errors.append(error.message)
    return errors
