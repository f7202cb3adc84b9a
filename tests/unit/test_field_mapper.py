"""Unit tests for mapping raw rows to canonical patient fields."""

import math

import pytest

from tbhiv_registry.importer.field_mapper import FIELD_CANDIDATES, map_row


class TestMapRow:
    """Tests for map_row."""

    def test_snake_case_headers(self):
        """Test snake_case column names map straight through."""
        # Arrange
        row = {
            "first_name": "Thabo",
            "last_name": "Mabaso",
            "date_of_birth": "1983-04-01",
            "gender": "male",
            "tb_status": "confirmed",
            "hiv_status": "positive",
        }

        # Act
        fields = map_row(row, "user-1")

        # Assert
        assert fields["first_name"] == "Thabo"
        assert fields["last_name"] == "Mabaso"
        assert fields["date_of_birth"] == "1983-04-01"
        assert fields["tb_status"] == "confirmed"
        assert fields["hiv_status"] == "positive"

    def test_camel_case_headers(self):
        """Test camelCase column names map to the same fields."""
        # Arrange
        row = {
            "firstName": "Nomsa",
            "lastName": "Shabalala",
            "dateOfBirth": "1991-12-24",
            "phoneNumber": "0831112222",
            "tbStatus": "suspected",
            "hivStatus": "negative",
        }

        # Act
        fields = map_row(row, "user-1")

        # Assert
        assert fields["first_name"] == "Nomsa"
        assert fields["last_name"] == "Shabalala"
        assert fields["date_of_birth"] == "1991-12-24"
        assert fields["phone_number"] == "0831112222"
        assert fields["tb_status"] == "suspected"
        assert fields["hiv_status"] == "negative"

    def test_snake_case_wins_over_camel_case(self):
        """Test the first candidate column is preferred when both hold values."""
        fields = map_row({"first_name": "Snake", "firstName": "Camel"}, None)

        assert fields["first_name"] == "Snake"

    @pytest.mark.parametrize("blank", ["", "   ", None, math.nan])
    def test_blank_value_falls_through_to_next_candidate(self, blank):
        """Test an absent first candidate falls through to the camelCase column."""
        fields = map_row({"first_name": blank, "firstName": "Camel"}, None)

        assert fields["first_name"] == "Camel"

    def test_status_defaults_applied(self):
        """Test missing statuses default to negative TB and unknown HIV."""
        # Arrange & Act
        fields = map_row({"first_name": "Lindiwe"}, "user-1")

        # Assert
        assert fields["tb_status"] == "negative"
        assert fields["hiv_status"] == "unknown"

    def test_blank_status_gets_default(self):
        """Test a blank status cell is treated as missing."""
        fields = map_row({"tb_status": "", "hiv_status": " "}, None)

        assert fields["tb_status"] == "negative"
        assert fields["hiv_status"] == "unknown"

    def test_missing_required_field_is_none(self):
        """Test a missing required field is left for the validator to report."""
        fields = map_row({"last_name": "Mabaso"}, None)

        assert fields["first_name"] is None
        assert fields["gender"] is None

    def test_import_metadata(self):
        """Test data_source and created_by are stamped on every row."""
        # Arrange & Act
        fields = map_row({}, "clinician-7")

        # Assert
        assert fields["data_source"] == "manual_entry"
        assert fields["created_by"] == "clinician-7"

    def test_unknown_columns_ignored(self):
        """Test columns outside the vocabulary do not appear in the output."""
        fields = map_row({"first_name": "Thabo", "notes": "walk-in"}, None)

        assert "notes" not in fields
        assert set(fields) == set(FIELD_CANDIDATES) | {"data_source", "created_by"}

    def test_values_passed_through_unmodified(self):
        """Test mapping does no trimming or type conversion."""
        fields = map_row({"first_name": "  Thabo ", "phone_number": 825551234}, None)

        assert fields["first_name"] == "  Thabo "
        assert fields["phone_number"] == 825551234
