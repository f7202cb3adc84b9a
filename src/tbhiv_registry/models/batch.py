"""Import batch result data models.

ImportBatchResult is built fresh for every import call and discarded once the
caller has rendered it. Only its summary is audited.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass
class RowFailure:
    """A single row that could not be imported.

    Attributes:
        row: 1-based position of the row among the file's data rows
        error: Human-readable description of why the row was rejected
        data: The raw row exactly as the parser produced it
    """

    row: int
    error: str
    data: Dict[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {"row": self.row, "error": self.error, "data": self.data}


@dataclass
class ImportBatchResult:
    """Outcome of one patient import batch.

    Attributes:
        total: Number of data rows parsed from the file (header excluded)
        success: Number of rows persisted
        errors: Row failures in file order

    Example:
        >>> result = ImportBatchResult(total=3)
        >>> result.success += 2
        >>> result.add_failure(2, "Invalid gender 'x'", {"gender": "x"})
        >>> result.failure_count
        1
    """

    total: int = 0
    success: int = 0
    errors: List[RowFailure] = field(default_factory=list)

    @property
    def failure_count(self) -> int:
        """Number of rows that failed."""
        return len(self.errors)

    @property
    def has_failures(self) -> bool:
        """Check if any row failed."""
        return len(self.errors) > 0

    def add_failure(self, row: int, error: str, data: Dict[str, Any]) -> None:
        """Record a failed row.

        Args:
            row: 1-based data row number
            error: Failure description
            data: Raw row data
        """
        self.errors.append(RowFailure(row=row, error=error, data=data))

    def summary(self) -> Dict[str, int]:
        """Summary payload recorded in the audit log."""
        return {
            "total": self.total,
            "success": self.success,
            "failure_count": self.failure_count,
        }

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the {total, success, errors} response shape."""
        return {
            "total": self.total,
            "success": self.success,
            "errors": [failure.to_dict() for failure in self.errors],
        }

    def format_report(self) -> str:
        """Format the batch result as a human-readable report.

        Returns:
            Multi-line string with counts and the first 20 row failures
        """
        lines = []
        lines.append("=" * 60)
        lines.append("PATIENT IMPORT REPORT")
        lines.append("=" * 60)
        lines.append("")
        lines.append("SUMMARY:")
        lines.append(f"  Total rows: {self.total}")
        lines.append(f"  Imported: {self.success}")
        lines.append(f"  Failed: {self.failure_count}")
        lines.append("")

        if self.errors:
            lines.append(f"ERRORS ({self.failure_count}):")
            for failure in self.errors[:20]:
                lines.append(f"  Row {failure.row}: {failure.error}")
            if self.failure_count > 20:
                lines.append(f"  ... and {self.failure_count - 20} more errors")
            lines.append("")

        lines.append("=" * 60)
        if not self.errors:
            lines.append("RESULT: ✓ All rows imported")
        elif self.success:
            lines.append("RESULT: ✗ Import completed with row failures")
        else:
            lines.append("RESULT: ✗ No rows imported")
        lines.append("=" * 60)

        return "\n".join(lines)
