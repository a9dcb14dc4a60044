"""Flask persistence service for garage vehicles (accounts + per-owner vehicle documents)."""

import re
import uuid
from functools import wraps
from pathlib import Path

from flask import Flask, g, jsonify, request
from loguru import logger

from garage import config
from garage.auth import decode_token, hash_password, sign_token, verify_password
from garage.errors import GarageError
from garage.loader import (
    delete_vehicle_document,
    load_document,
    load_schema,
    load_vehicle_document,
    save_document,
    save_vehicle_document,
    validate_record,
    vehicle_from_dict,
)
from garage.logging_config import setup_logging
from garage.repository import new_vehicle_id

VEHICLE_ID = re.compile(r"^[A-Za-z0-9_-]+$")


# =============================================================================
# Storage helpers
# =============================================================================


def get_users_path() -> Path:
    return Path(g.data_dir) / "users.yaml"


def get_vehicles_dir() -> Path:
    return Path(g.data_dir) / "vehicles"


def get_vehicle_path(vehicle_id: str) -> Path:
    """Get full path for a vehicle ID."""
    return get_vehicles_dir() / f"{vehicle_id}.yaml"


def get_vehicle_files():
    """Get all stored vehicle documents."""
    return sorted(get_vehicles_dir().glob("*.yaml"))


def error(message: str, status: int, key: str = "error"):
    return jsonify({key: message}), status


def normalize_record(data, vehicle_id=None):
    """
    Validate an incoming wire record and rebuild it through the domain model.

    Returns (record, None) or (None, error message).
    """
    if not isinstance(data, dict):
        return None, "Request body must be a JSON object."
    if vehicle_id is not None:
        data = {**data, "id": vehicle_id}
    errors = validate_record(data, g.schema)
    if errors:
        return None, f"Invalid vehicle: {errors[0]}"
    try:
        return vehicle_from_dict(data).serialize(), None
    except GarageError as e:
        return None, str(e)


# =============================================================================
# Authentication
# =============================================================================


def require_account(view):
    """Reject requests without a valid bearer token; sets g.account_id."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        header = request.headers.get("Authorization", "")
        if not header.startswith("Bearer "):
            return error("No token, authorization denied.", 401, key="msg")
        account_id = decode_token(
            header.split(" ", 1)[1], g.jwt_secret, g.jwt_algorithm
        )
        if account_id is None:
            return error("Token is not valid.", 401, key="msg")
        g.account_id = account_id
        return view(*args, **kwargs)

    return wrapper


def load_owned(vehicle_id: str):
    """
    Load a vehicle document owned by the caller.

    Returns (document, None) or (None, error response).
    """
    if not VEHICLE_ID.match(vehicle_id):
        return None, error("Vehicle not found.", 404)
    document = load_vehicle_document(get_vehicle_path(vehicle_id))
    if document is None:
        return None, error("Vehicle not found.", 404)
    if document.get("owner") != g.account_id:
        return None, error("Unauthorized access.", 401)
    return document, None


# =============================================================================
# Application
# =============================================================================


def create_app(overrides=None) -> Flask:
    app = Flask(__name__)
    app.config.update(
        SECRET_KEY=config.SECRET_KEY,
        DATA_DIR=str(config.DATA_DIR),
        JWT_SECRET=config.JWT_SECRET,
        JWT_ALGORITHM=config.JWT_ALGORITHM,
        JWT_EXP_SECONDS=config.JWT_EXP_SECONDS,
    )
    if overrides:
        app.config.update(overrides)

    schema = load_schema()

    @app.before_request
    def bind_settings():
        g.data_dir = app.config["DATA_DIR"]
        g.jwt_secret = app.config["JWT_SECRET"]
        g.jwt_algorithm = app.config["JWT_ALGORITHM"]
        g.schema = schema

    # -------------------------------------------------------------------------
    # Accounts
    # -------------------------------------------------------------------------

    @app.route("/api/auth/register", methods=["POST"])
    def register():
        body = request.get_json(silent=True) or {}
        email = str(body.get("email") or "").strip().lower()
        password = body.get("password") or ""
        if not email or not password:
            return error("Email and password are required.", 400, key="msg")

        users = load_document(get_users_path())
        if email in users:
            return error("A user with this email already exists.", 400, key="msg")

        users[email] = {"id": uuid.uuid4().hex, "password": hash_password(password)}
        save_document(get_users_path(), users)
        logger.info(f"Registered account {users[email]['id']}")
        return jsonify({"msg": "User registered successfully!"}), 201

    @app.route("/api/auth/login", methods=["POST"])
    def login():
        body = request.get_json(silent=True) or {}
        email = str(body.get("email") or "").strip().lower()
        password = body.get("password") or ""

        user = load_document(get_users_path()).get(email)
        if not user or not verify_password(password, user["password"]):
            return error("Invalid email or password.", 400, key="msg")

        token = sign_token(
            user["id"],
            app.config["JWT_SECRET"],
            app.config["JWT_ALGORITHM"],
            app.config["JWT_EXP_SECONDS"],
        )
        return jsonify({"token": token})

    # -------------------------------------------------------------------------
    # Vehicles
    # -------------------------------------------------------------------------

    @app.route("/vehicles", methods=["GET"])
    @require_account
    def list_vehicles():
        vehicles = []
        for path in get_vehicle_files():
            document = load_vehicle_document(path)
            if document and document.get("owner") == g.account_id:
                vehicles.append(document["vehicle"])
        return jsonify(vehicles)

    @app.route("/vehicles", methods=["POST"])
    @require_account
    def create_vehicle():
        data = request.get_json(silent=True)
        if isinstance(data, dict):
            data = {**data, "id": data.get("id") or data.get("_id") or new_vehicle_id()}
        record, message = normalize_record(data)
        if record is None:
            return error(message, 400)

        path = get_vehicle_path(record["id"])
        if path.exists():
            return error(f"Vehicle '{record['id']}' already exists.", 409)
        save_vehicle_document(path, g.account_id, record)
        logger.info(f"Account {g.account_id} created vehicle {record['id']}")
        return jsonify(record), 201

    @app.route("/vehicles/<vehicle_id>", methods=["PUT"])
    @require_account
    def update_vehicle(vehicle_id: str):
        document, failure = load_owned(vehicle_id)
        if failure:
            return failure
        record, message = normalize_record(request.get_json(silent=True), vehicle_id)
        if record is None:
            return error(message, 400)
        save_vehicle_document(get_vehicle_path(vehicle_id), document["owner"], record)
        return jsonify(record)

    @app.route("/vehicles/<vehicle_id>", methods=["DELETE"])
    @require_account
    def delete_vehicle(vehicle_id: str):
        _, failure = load_owned(vehicle_id)
        if failure:
            return failure
        delete_vehicle_document(get_vehicle_path(vehicle_id))
        logger.info(f"Account {g.account_id} deleted vehicle {vehicle_id}")
        return jsonify({"message": "Vehicle deleted successfully."})

    return app


if __name__ == "__main__":
    setup_logging(config.LOG_LEVEL)
    create_app().run(debug=True, host="0.0.0.0", port=config.PORT)
