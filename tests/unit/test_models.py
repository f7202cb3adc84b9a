"""Unit tests for patient and batch result models."""

from datetime import date, datetime, timezone

from tbhiv_registry.models import (
    Gender,
    HIVStatus,
    ImportBatchResult,
    PatientRecord,
    TBStatus,
)


class TestPatientRecord:
    """Tests for PatientRecord."""

    def test_defaults(self):
        """Test statuses and lifecycle defaults."""
        # Arrange & Act
        record = PatientRecord(
            patient_id="TB-2024-000001",
            first_name="Thandiwe",
            last_name="Dlamini",
            date_of_birth=date(1985, 3, 12),
            gender=Gender.FEMALE,
        )

        # Assert
        assert record.tb_status is TBStatus.NEGATIVE
        assert record.hiv_status is HIVStatus.UNKNOWN
        assert record.is_active is True
        assert record.is_co_infected is False

    def test_to_dict_camel_case(self):
        """Test to_dict produces camelCase keys and ISO dates."""
        # Arrange
        record = PatientRecord(
            patient_id="TB-2024-000001",
            first_name="Thandiwe",
            last_name="Dlamini",
            date_of_birth=date(1985, 3, 12),
            gender=Gender.FEMALE,
            tb_status=TBStatus.CONFIRMED,
            hiv_status=HIVStatus.POSITIVE,
            registration_date=date(2024, 6, 1),
            last_updated=datetime(2024, 6, 1, 8, 30, tzinfo=timezone.utc),
        )

        # Act
        data = record.to_dict()

        # Assert
        assert data["patientId"] == "TB-2024-000001"
        assert data["dateOfBirth"] == "1985-03-12"
        assert data["gender"] == "female"
        assert data["tbStatus"] == "confirmed"
        assert data["registrationDate"] == "2024-06-01"
        assert data["lastUpdated"].startswith("2024-06-01T08:30:00")


class TestImportBatchResult:
    """Tests for ImportBatchResult."""

    def test_to_dict_shape(self):
        """Test the response shape is total, success and errors."""
        # Arrange
        result = ImportBatchResult(total=3, success=2)
        result.add_failure(2, "Invalid gender 'x'", {"gender": "x"})

        # Act & Assert
        assert result.to_dict() == {
            "total": 3,
            "success": 2,
            "errors": [{"row": 2, "error": "Invalid gender 'x'", "data": {"gender": "x"}}],
        }
        assert result.summary() == {"total": 3, "success": 2, "failure_count": 1}

    def test_report_all_imported(self):
        """Test the report for a clean batch."""
        report = ImportBatchResult(total=2, success=2).format_report()

        assert "PATIENT IMPORT REPORT" in report
        assert "Imported: 2" in report
        assert "RESULT: ✓ All rows imported" in report

    def test_report_partial(self):
        """Test the report lists failed rows."""
        # Arrange
        result = ImportBatchResult(total=3, success=2)
        result.add_failure(2, "Invalid gender 'x'", {})

        # Act
        report = result.format_report()

        # Assert
        assert "Row 2: Invalid gender 'x'" in report
        assert "RESULT: ✗ Import completed with row failures" in report

    def test_report_truncates_long_error_lists(self):
        """Test only the first 20 failures are listed."""
        # Arrange
        result = ImportBatchResult(total=25)
        for row in range(1, 26):
            result.add_failure(row, "Missing required field 'gender'", {})

        # Act
        report = result.format_report()

        # Assert
        assert "Row 20:" in report
        assert "Row 21:" not in report
        assert "... and 5 more errors" in report
        assert "RESULT: ✗ No rows imported" in report
