#!/usr/bin/env python3
"""Tests for garage CLI formatting helpers and commands."""

import pytest

from garage import AuthExpired, MaintenanceRecord, Vehicle
from garage.status import CnhStatus
from garage_cli import (
    format_cnh_alert,
    format_cost,
    format_speed,
    main,
    make_history_table,
    make_vehicle_table,
    parse_action,
    truncate,
)

# =============================================================================
# Formatting helpers
# =============================================================================


class TestFormatSpeed:
    def test_formats(self):
        assert format_speed(40, 180) == "40/180 km/h"


class TestFormatCost:
    """Tests for format_cost."""

    def test_formats_number(self):
        assert format_cost(75.5) == "R$ 75.50"

    def test_zero_or_none_returns_dash(self):
        assert format_cost(0) == "-"
        assert format_cost(None) == "-"


class TestTruncate:
    """Tests for truncate."""

    def test_short_text_unchanged(self):
        assert truncate("Synthetic") == "Synthetic"

    def test_long_text_truncated(self):
        assert truncate("x" * 40, max_len=10) == "xxxxxxx..."

    def test_empty_returns_dash(self):
        assert truncate("") == "-"
        assert truncate(None) == "-"


class TestTables:
    """Tests for table row builders."""

    def test_vehicle_rows(self):
        vehicle = Vehicle("v1", "Civic", year=2020, cnh_expiry="2027-05-01")
        assert make_vehicle_table([vehicle]) == [["v1", "Civic (S/P)", "Car", 2020, "01/05/2027"]]

    def test_history_rows(self):
        vehicle = Vehicle("v1", "Civic")
        vehicle.add_maintenance(MaintenanceRecord.create("2024-01-15", "Oil change", 150, "Synthetic"))
        assert make_history_table(vehicle) == [["15/01/2024", "Oil change", "R$ 150.00", "Synthetic"]]

    def test_cnh_alert_text(self):
        vehicle = Vehicle("v1", "Civic")
        assert format_cnh_alert(vehicle, CnhStatus.EXPIRED, -3) == (
            "Civic: driver's license EXPIRED 3d ago"
        )
        assert format_cnh_alert(vehicle, CnhStatus.EXPIRING_SOON, 10) == (
            "Civic: driver's license expires in 10d"
        )


class TestParseAction:
    def test_with_and_without_argument(self):
        assert parse_action("accelerate") == ("accelerate", [])
        assert parse_action("load_cargo=500") == ("load_cargo", ["500"])


# =============================================================================
# Commands
# =============================================================================


@pytest.fixture
def token_file(tmp_path):
    path = tmp_path / "token"
    path.write_text("valid")
    return path


def run(store, token_file, *argv):
    return main(["--token-file", str(token_file), *argv], store=store)


class TestAccountCommands:
    """Tests for register / login / logout."""

    def test_login_saves_token(self, store, tmp_path, capsys):
        token_file = tmp_path / "nested" / "token"
        assert run(store, token_file, "login", "me@example.com", "secret") == 0
        assert token_file.read_text() == "token-for-me@example.com"
        assert "Logged in as me@example.com." in capsys.readouterr().out

    def test_logout_removes_token(self, store, token_file):
        assert run(store, token_file, "logout") == 0
        assert not token_file.exists()

    def test_not_logged_in(self, store, tmp_path, capsys):
        assert run(store, tmp_path / "missing", "list") == 1
        assert "Error: Not logged in." in capsys.readouterr().out


class TestListAndShow:
    """Tests for list / show."""

    def test_list(self, store, token_file, capsys):
        assert run(store, token_file, "list") == 0
        out = capsys.readouterr().out
        assert "Civic (ABC1234)" in out
        assert "Ferrari (S/P)" in out
        assert out.index("Civic") < out.index("Ferrari") < out.index("Scania")

    def test_list_empty(self, store, token_file, capsys):
        store.records.clear()
        assert run(store, token_file, "list") == 0
        assert "Your garage is empty." in capsys.readouterr().out

    def test_list_alerts(self, store, token_file, capsys):
        store.records["civic"]["cnhExpiry"] = "2000-01-01"
        run(store, token_file, "list")
        out = capsys.readouterr().out
        assert "DRIVER'S LICENSE ALERTS:" in out
        assert "Civic: driver's license EXPIRED" in out

    def test_show(self, store, token_file, capsys):
        store.records["scania"]["maintenanceHistory"] = [
            {"when": "2024-01-15T00:00:00.000Z", "serviceType": "Oil change", "cost": 150, "notes": ""}
        ]
        assert run(store, token_file, "show", "scania") == 0
        out = capsys.readouterr().out
        assert "Scania (Truck)" in out
        assert "Cargo: 0kg / 1000kg" in out
        assert "Oil change" in out

    def test_show_without_history(self, store, token_file, capsys):
        run(store, token_file, "show", "civic")
        assert "No maintenance records found." in capsys.readouterr().out

    def test_show_unknown(self, store, token_file, capsys):
        assert run(store, token_file, "show", "nope") == 1
        assert "Error: Vehicle 'nope' not found." in capsys.readouterr().out


class TestVehicleCommands:
    """Tests for add / edit / delete."""

    def test_add(self, store, token_file):
        assert run(store, token_file, "add", "FH", "--type", "truck", "--capacity", "5000") == 0
        created = [r for r in store.records.values() if r["model"] == "FH"]
        assert created[0]["cargoCapacity"] == 5000

    def test_edit(self, store, token_file):
        assert run(store, token_file, "edit", "civic", "--color", "blue", "--year", "2021") == 0
        assert store.records["civic"]["color"] == "blue"
        assert store.records["civic"]["year"] == 2021

    def test_edit_nothing(self, store, token_file):
        assert run(store, token_file, "edit", "civic") == 1

    def test_delete_confirmed(self, store, token_file):
        assert run(store, token_file, "delete", "civic", "--yes") == 0
        assert "civic" not in store.records

    def test_delete_declined(self, store, token_file, monkeypatch, capsys):
        monkeypatch.setattr("builtins.input", lambda prompt: "n")
        assert run(store, token_file, "delete", "civic") == 0
        assert "civic" in store.records
        assert "Cancelled." in capsys.readouterr().out


class TestMaintenanceCommands:
    """Tests for log / clear-history."""

    def test_log(self, store, token_file):
        assert run(store, token_file, "log", "civic", "Oil change", "--date", "2024-01-15", "--cost", "150") == 0
        assert store.records["civic"]["maintenanceHistory"] == [
            {"when": "2024-01-15T00:00:00.000Z", "serviceType": "Oil change", "cost": 150.0, "notes": ""}
        ]

    def test_log_dry_run(self, store, token_file, capsys):
        assert run(store, token_file, "log", "civic", "Oil change", "--dry-run") == 0
        assert store.records["civic"]["maintenanceHistory"] == []
        assert "(dry run - no changes made)" in capsys.readouterr().out

    def test_log_invalid_date(self, store, token_file, capsys):
        assert run(store, token_file, "log", "civic", "Oil change", "--date", "someday") == 1
        assert "Error: Invalid maintenance data." in capsys.readouterr().out

    def test_clear_history(self, store, token_file):
        run(store, token_file, "log", "civic", "Oil change", "--date", "2024-01-15")
        assert run(store, token_file, "clear-history", "civic", "--yes") == 0
        assert store.records["civic"]["maintenanceHistory"] == []


class TestDrive:
    """Tests for drive."""

    def test_actions_are_local(self, store, token_file, capsys):
        assert run(store, token_file, "drive", "civic", "power_on", "accelerate") == 0
        assert store.records["civic"]["speed"] == 0
        assert "Civic: On, 10/180 km/h" in capsys.readouterr().out

    def test_save(self, store, token_file):
        run(store, token_file, "drive", "scania", "load_cargo=300", "--save")
        assert store.records["scania"]["currentCargo"] == 300

    def test_refusal_message(self, store, token_file, capsys):
        run(store, token_file, "drive", "civic", "accelerate")
        assert "Turn the car on to accelerate!" in capsys.readouterr().out

    def test_unknown_action(self, store, token_file, capsys):
        assert run(store, token_file, "drive", "civic", "fly") == 1
        assert "Error: Unknown action: fly" in capsys.readouterr().out

    def test_missing_action_argument(self, store, token_file, capsys):
        assert run(store, token_file, "drive", "scania", "power_on", "load_cargo") == 1
        assert "Error: load_cargo needs a weight." in capsys.readouterr().out


class TestSessionExpiry:
    def test_auth_expired_forgets_token(self, store, token_file, capsys):
        store.fail_with(AuthExpired("Token is not valid."))
        assert run(store, token_file, "list") == 1
        assert not token_file.exists()
        assert "Error: Token is not valid." in capsys.readouterr().out
