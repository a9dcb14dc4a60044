#!/usr/bin/env python3
"""Tests for validate_yaml stored document validation."""

from garage.loader import load_schema
from validate_yaml import main, validate_vehicle_file


class TestLoadSchema:
    """Tests for load_schema function."""

    def test_returns_dict(self):
        schema = load_schema()
        assert isinstance(schema, dict)

    def test_has_expected_structure(self):
        schema = load_schema()
        assert "properties" in schema
        assert "variantTag" in schema["properties"]
        assert "maintenanceHistory" in schema["properties"]


class TestValidateVehicleFile:
    """Tests for validate_vehicle_file function."""

    def test_valid_document_returns_no_errors(self, tmp_path):
        """Valid stored document returns empty error list."""
        path = tmp_path / "civic.yaml"
        path.write_text("""
owner: 0f2c1d
vehicle:
  id: civic
  model: Civic
  variantTag: base
  cnhExpiry: '2027-05-01'
  maintenanceHistory:
    - when: '2024-01-15T00:00:00.000Z'
      serviceType: Oil change
      cost: 150.0
      notes: ''
""")
        errors = validate_vehicle_file(path, load_schema())
        assert errors == []

    def test_missing_required_field_returns_errors(self, tmp_path):
        """Missing model returns schema validation errors."""
        path = tmp_path / "invalid.yaml"
        path.write_text("""
owner: 0f2c1d
vehicle:
  id: civic
  variantTag: base
""")
        errors = validate_vehicle_file(path, load_schema())
        assert errors == ["Schema validation error: 'model' is a required property"]

    def test_missing_owner(self, tmp_path):
        path = tmp_path / "orphan.yaml"
        path.write_text("""
vehicle:
  id: civic
  model: Civic
  variantTag: base
""")
        assert validate_vehicle_file(path, load_schema()) == ["Error: missing owner"]

    def test_yaml_parse_error(self, tmp_path):
        """Malformed YAML returns parse error."""
        path = tmp_path / "broken.yaml"
        path.write_text("owner: [unclosed\n")
        errors = validate_vehicle_file(path, load_schema())
        assert len(errors) == 1
        assert errors[0].startswith("YAML parse error:")


class TestMain:
    """Tests for main over a directory."""

    def test_all_valid(self, tmp_path, capsys):
        (tmp_path / "civic.yaml").write_text(
            "owner: a\nvehicle:\n  id: civic\n  model: Civic\n  variantTag: base\n"
        )
        assert main([str(tmp_path)]) == 0
        assert "OK: civic.yaml" in capsys.readouterr().out

    def test_failure(self, tmp_path, capsys):
        (tmp_path / "bad.yaml").write_text("owner: a\nvehicle:\n  id: bad\n")
        assert main([str(tmp_path)]) == 1
        assert "FAIL: bad.yaml" in capsys.readouterr().out

    def test_missing_directory(self, tmp_path):
        assert main([str(tmp_path / "nope")]) == 1
