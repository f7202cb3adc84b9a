"""Custom exception classes for the TB/HIV registry.

All exceptions inherit from RegistryError to allow catching all custom exceptions.

Import errors come in two scopes. Batch-level errors (UnsupportedFormatError,
ParseFailureError) abort an import before any row is processed. Row-level
errors (ValidationError, PersistenceError) are recorded against a single row
and the batch carries on.
"""


class RegistryError(Exception):
    """Base exception for all registry custom exceptions."""

    pass


class UnsupportedFormatError(RegistryError):
    """Raised when an uploaded or exported file format is not supported.

    Examples:
        - Uploading patients.txt
        - Requesting an export in a format other than csv/xlsx
    """

    pass


class ParseFailureError(RegistryError):
    """Raised when file content does not conform to its claimed format.

    Examples:
        - Binary content in a .csv upload
        - A corrupt or password-protected .xlsx workbook
        - Invalid UTF-8 in a CSV file
    """

    pass


class ValidationError(RegistryError):
    """Raised when a mapped patient row fails schema rules.

    Examples:
        - Missing first_name
        - Unparseable date_of_birth
        - gender, tb_status or hiv_status outside their vocabulary
    """

    pass


class PersistenceError(RegistryError):
    """Raised when the patient repository rejects an otherwise valid record.

    Examples:
        - Duplicate patient_id (two imports allocated the same sequence)
        - Database constraint violation or lost connection
    """

    pass


class ConfigurationError(RegistryError):
    """Raised when configuration loading or validation fails.

    Examples:
        - Missing required configuration
        - Invalid configuration file format
        - Configuration value out of range
    """

    pass


# Errors the import loop records against a single row instead of aborting.
ROW_LEVEL_ERRORS = (ValidationError, PersistenceError)
