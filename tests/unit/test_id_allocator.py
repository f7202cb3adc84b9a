"""Unit tests for sequential patient ID allocation."""

from datetime import datetime

import pytest

from tbhiv_registry.importer.id_allocator import (
    ID_PREFIX,
    PATIENT_ID_PATTERN,
    allocate_patient_id,
    format_patient_id,
    parse_patient_id,
)
from tbhiv_registry.utils.exceptions import ValidationError


class TestFormatPatientId:
    """Tests for format_patient_id."""

    def test_zero_padded_sequence(self):
        """Test the sequence is padded to six digits."""
        assert format_patient_id(1847, 2024) == "TB-2024-001847"

    def test_sequence_wider_than_padding(self):
        """Test sequences beyond six digits are not truncated."""
        assert format_patient_id(1234567, 2024) == "TB-2024-1234567"

    @pytest.mark.parametrize("sequence", [0, -1])
    def test_non_positive_sequence_rejected(self, sequence):
        """Test a sequence below 1 raises ValueError."""
        with pytest.raises(ValueError):
            format_patient_id(sequence, 2024)


class TestAllocatePatientId:
    """Tests for allocate_patient_id."""

    def test_first_patient(self):
        """Test an empty repository starts the sequence at 1."""
        assert allocate_patient_id(0, 0, year=2024) == "TB-2024-000001"

    def test_sequence_counts_existing_and_batch_successes(self):
        """Test the sequence is existing count plus batch successes plus one."""
        assert allocate_patient_id(1846, 0, year=2024) == "TB-2024-001847"
        assert allocate_patient_id(1846, 3, year=2024) == "TB-2024-001850"

    def test_defaults_to_current_year(self):
        """Test the current year is stamped when none is given."""
        # Arrange
        year = datetime.now().year

        # Act
        patient_id = allocate_patient_id(0, 0)

        # Assert
        assert patient_id.startswith(f"{ID_PREFIX}-{year}-")

    def test_batch_ids_strictly_increasing(self):
        """Test consecutive allocations in a batch increase by one."""
        # Arrange & Act
        ids = [allocate_patient_id(10, successes, year=2024) for successes in range(5)]

        # Assert
        sequences = [parse_patient_id(patient_id)[1] for patient_id in ids]
        assert sequences == [11, 12, 13, 14, 15]
        assert all(PATIENT_ID_PATTERN.match(patient_id) for patient_id in ids)


class TestParsePatientId:
    """Tests for parse_patient_id."""

    def test_parse_valid_id(self):
        """Test year and sequence are extracted."""
        assert parse_patient_id("TB-2024-001847") == (2024, 1847)

    @pytest.mark.parametrize(
        "value",
        ["TB-24-000001", "TB-2024-01", "HIV-2024-000001", "TB-2024-000001x", ""],
    )
    def test_invalid_id_raises(self, value):
        """Test malformed identifiers raise ValidationError."""
        with pytest.raises(ValidationError) as exc_info:
            parse_patient_id(value)

        assert "patient_id" in str(exc_info.value)
