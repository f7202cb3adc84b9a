"""Unit tests for the upload record parser."""

from datetime import datetime

import pytest

from tbhiv_registry.importer.parser import (
    CSV_FORMAT,
    SPREADSHEET_FORMAT,
    detect_format,
    parse_records,
)
from tbhiv_registry.utils.exceptions import ParseFailureError, UnsupportedFormatError


class TestDetectFormat:
    """Tests for extension-based format detection."""

    @pytest.mark.parametrize(
        "file_name,expected",
        [
            ("patients.csv", CSV_FORMAT),
            ("patients.xlsx", SPREADSHEET_FORMAT),
            ("patients.xls", SPREADSHEET_FORMAT),
            ("PATIENTS.CSV", CSV_FORMAT),
            ("Register.XLSX", SPREADSHEET_FORMAT),
        ],
    )
    def test_supported_extensions(self, file_name, expected):
        """Test supported extensions are recognised regardless of case."""
        assert detect_format(file_name) == expected

    @pytest.mark.parametrize("file_name", ["patients.txt", "patients.json", "patients"])
    def test_unsupported_extension_raises(self, file_name):
        """Test unsupported file names raise UnsupportedFormatError."""
        with pytest.raises(UnsupportedFormatError) as exc_info:
            detect_format(file_name)

        assert "CSV or Excel" in str(exc_info.value)


class TestParseCsv:
    """Tests for parsing CSV uploads."""

    def test_parse_rows_in_file_order(self, sample_csv_bytes):
        """Test each data row becomes one mapping keyed by header."""
        # Arrange & Act
        rows = parse_records(sample_csv_bytes, "patients.csv")

        # Assert
        assert len(rows) == 3
        assert rows[0]["first_name"] == "Thandiwe"
        assert rows[1]["first_name"] == "Sipho"
        assert rows[2]["first_name"] == "Lerato"

    def test_cells_kept_as_text(self, sample_csv_bytes):
        """Test numeric-looking cells are not coerced to numbers."""
        # Arrange & Act
        rows = parse_records(sample_csv_bytes, "patients.csv")

        # Assert - leading zero survives
        assert rows[0]["phone_number"] == "0825551234"
        assert rows[0]["date_of_birth"] == "1985-03-12"

    def test_header_only_yields_no_rows(self):
        """Test a header with no data rows parses to an empty list."""
        # Arrange
        data = b"first_name,last_name,date_of_birth,gender\n"

        # Act
        rows = parse_records(data, "patients.csv")

        # Assert
        assert rows == []

    @pytest.mark.parametrize("data", [b"", b"   \n\n"])
    def test_empty_content_yields_no_rows(self, data):
        """Test empty and whitespace-only files parse to an empty list."""
        assert parse_records(data, "patients.csv") == []

    def test_utf8_bom_is_stripped_from_header(self):
        """Test a byte order mark does not end up in the first column name."""
        # Arrange
        data = "\ufefffirst_name,last_name\nZodwa,Mahlangu\n".encode("utf-8")

        # Act
        rows = parse_records(data, "patients.csv")

        # Assert
        assert rows == [{"first_name": "Zodwa", "last_name": "Mahlangu"}]

    def test_quoted_values_with_commas(self):
        """Test quoted fields containing commas stay in one cell."""
        # Arrange
        data = b'first_name,address\nPalesa,"12 Main Rd, Soweto"\n'

        # Act
        rows = parse_records(data, "patients.csv")

        # Assert
        assert rows[0]["address"] == "12 Main Rd, Soweto"

    def test_malformed_csv_raises_parse_failure(self):
        """Test content that is not valid CSV raises ParseFailureError."""
        # Arrange - unterminated quote
        data = b'first_name,last_name\n"Unclosed,Dube\n'

        # Act & Assert
        with pytest.raises(ParseFailureError) as exc_info:
            parse_records(data, "broken.csv")

        assert "broken.csv" in str(exc_info.value)

    def test_unsupported_extension_rejected_before_reading(self):
        """Test the extension check happens before content is read."""
        with pytest.raises(UnsupportedFormatError):
            parse_records(b"not even looked at", "patients.txt")


class TestParseSpreadsheet:
    """Tests for parsing Excel uploads."""

    def test_parse_first_sheet(self, make_xlsx):
        """Test rows of the first sheet are returned in order."""
        # Arrange
        data = make_xlsx([
            {"first_name": "Kagiso", "last_name": "Molefe", "gender": "male"},
            {"first_name": "Ayanda", "last_name": "Ngcobo", "gender": "female"},
        ])

        # Act
        rows = parse_records(data, "patients.xlsx")

        # Assert
        assert [row["first_name"] for row in rows] == ["Kagiso", "Ayanda"]

    def test_blank_cells_are_omitted(self, make_xlsx):
        """Test blank cells do not appear in the row mapping."""
        # Arrange
        data = make_xlsx([{"first_name": None, "last_name": "Molefe"}])

        # Act
        rows = parse_records(data, "patients.xlsx")

        # Assert
        assert rows == [{"last_name": "Molefe"}]

    def test_native_cell_types_are_plain_python(self, make_xlsx):
        """Test dates and numbers come back as plain Python values."""
        # Arrange
        data = make_xlsx([{"date_of_birth": datetime(1980, 1, 15), "phone_number": 825551234}])

        # Act
        rows = parse_records(data, "patients.xlsx")

        # Assert
        assert rows[0]["date_of_birth"] == datetime(1980, 1, 15)
        assert type(rows[0]["phone_number"]) is int

    def test_header_only_workbook_yields_no_rows(self, make_xlsx):
        """Test a workbook with only a header row parses to an empty list."""
        # Arrange
        data = make_xlsx([], columns=["first_name", "last_name", "date_of_birth", "gender"])

        # Act & Assert
        assert parse_records(data, "patients.xlsx") == []

    def test_corrupt_workbook_raises_parse_failure(self):
        """Test bytes that are not a workbook raise ParseFailureError."""
        with pytest.raises(ParseFailureError) as exc_info:
            parse_records(b"this is not a zip archive", "patients.xlsx")

        assert "Excel" in str(exc_info.value)
