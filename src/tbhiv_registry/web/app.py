"""Flask application exposing patient import, export, listing and
single-patient create, fetch and deactivate.

Authentication is handled upstream; the acting user arrives in the
X-User-Id header.
"""

import math
from datetime import datetime, timezone
from typing import Any, Optional

from flask import Blueprint, Flask, Response, current_app, jsonify, request

from tbhiv_registry import __version__
from tbhiv_registry.config.schema import Config
from tbhiv_registry.importer.exporter import EXPORT_FORMATS, export_patients
from tbhiv_registry.importer.field_mapper import map_row
from tbhiv_registry.importer.id_allocator import allocate_patient_id
from tbhiv_registry.importer.orchestrator import import_patients
from tbhiv_registry.importer.validator import validate_patient
from tbhiv_registry.logging_audit import AuditSink, LoggingAuditSink, get_logger
from tbhiv_registry.models.audit import AuditEvent
from tbhiv_registry.models.patient import HIVStatus, TBStatus
from tbhiv_registry.storage.repository import (
    PatientFilter,
    PatientRepository,
    iter_all_patients,
)
from tbhiv_registry.utils.exceptions import (
    ParseFailureError,
    PersistenceError,
    UnsupportedFormatError,
    ValidationError,
)


logger = get_logger("tbhiv_registry.web")

USER_HEADER = "X-User-Id"
EXTENSION_KEY = "tbhiv_registry"

api = Blueprint("api", __name__)


def create_app(
    config: Optional[Config] = None,
    repository: Optional[PatientRepository] = None,
    audit_sink: Optional[AuditSink] = None,
) -> Flask:
    """Create the Flask application.

    Args:
        config: Registry configuration, defaults to Config()
        repository: Patient repository; opened from config.database when omitted
        audit_sink: Audit sink; follows config.audit when the repository is
            opened from config, LoggingAuditSink otherwise

    Returns:
        Configured Flask app
    """
    config = config or Config()

    if repository is None:
        from tbhiv_registry.storage.database import open_storage

        repository, configured_sink = open_storage(config)
        audit_sink = audit_sink or configured_sink

    app = Flask(__name__)
    app.config["MAX_CONTENT_LENGTH"] = config.server.max_upload_bytes
    app.extensions[EXTENSION_KEY] = {
        "repository": repository,
        "audit_sink": audit_sink or LoggingAuditSink(),
        "started_at": datetime.now(timezone.utc),
    }

    app.register_blueprint(api)
    app.before_request(_log_request)
    app.register_error_handler(413, _payload_too_large)

    logger.info("Registry web application initialized")
    return app


def _state() -> dict[str, Any]:
    return current_app.extensions[EXTENSION_KEY]


def _log_request() -> None:
    logger.info(
        f"{request.method} {request.path} "
        f"(Content-Length: {request.content_length or 0})"
    )


def _payload_too_large(error: Any) -> tuple[Response, int]:
    limit = current_app.config["MAX_CONTENT_LENGTH"]
    logger.warning(f"Rejected upload larger than {limit} bytes")
    return jsonify({"message": f"File too large. Maximum upload size is {limit} bytes"}), 413


def _message(message: str, status: int, **extra: Any) -> tuple[Response, int]:
    return jsonify({"message": message, **extra}), status


def _record_audit(event: AuditEvent) -> None:
    try:
        _state()["audit_sink"].record(event)
    except Exception:
        logger.exception(f"Failed to record {event.action} audit event")


@api.route("/health", methods=["GET"])
def health_check() -> tuple[Response, int]:
    """Report service status and uptime."""
    uptime_seconds = int(
        (datetime.now(timezone.utc) - _state()["started_at"]).total_seconds()
    )
    return jsonify({
        "status": "healthy",
        "version": __version__,
        "uptime_seconds": uptime_seconds,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }), 200


@api.route("/api/import/patients", methods=["POST"])
def import_patients_endpoint() -> tuple[Response, int]:
    """Import patients from a multipart upload in field 'file'."""
    upload = request.files.get("file")
    if upload is None or not upload.filename:
        return _message("No file uploaded", 400)

    user_id = request.headers.get(USER_HEADER)
    if not user_id:
        return _message("User ID not found", 400)

    try:
        result = import_patients(
            upload.read(),
            upload.filename,
            user_id,
            _state()["repository"],
            _state()["audit_sink"],
            ip_address=request.remote_addr,
            user_agent=request.headers.get("User-Agent"),
        )
    except UnsupportedFormatError as e:
        return _message(str(e), 400)
    except ParseFailureError as e:
        logger.error(f"Import of {upload.filename} failed: {e}")
        return _message("Failed to parse file", 422, error=str(e))

    return jsonify(result.to_dict()), 200


@api.route("/api/export/patients", methods=["GET"])
def export_patients_endpoint() -> Any:
    """Export every patient as a CSV or Excel attachment."""
    fmt = request.args.get("format", "csv").lower()
    if fmt not in EXPORT_FORMATS:
        return _message("Unsupported export format", 400)

    user_id = request.headers.get(USER_HEADER)
    if not user_id:
        return _message("User ID not found", 400)

    patients = iter_all_patients(_state()["repository"])
    content = export_patients(patients, fmt)
    mimetype, filename = EXPORT_FORMATS[fmt]

    _record_audit(
        AuditEvent(
            user_id=user_id,
            action="export",
            resource_type="patient",
            new_values={"format": fmt, "record_count": len(patients)},
            ip_address=request.remote_addr,
            user_agent=request.headers.get("User-Agent"),
        )
    )

    return Response(
        content,
        mimetype=mimetype,
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@api.route("/api/patients", methods=["GET"])
def list_patients_endpoint() -> tuple[Response, int]:
    """List patients with search, status filters and pagination."""
    try:
        page = max(int(request.args.get("page", "1")), 1)
        limit = max(int(request.args.get("limit", "10")), 1)
        tb_status = _optional_enum(TBStatus, request.args.get("tbStatus"))
        hiv_status = _optional_enum(HIVStatus, request.args.get("hivStatus"))
    except ValueError as e:
        return _message(f"Invalid query parameter: {e}", 400)

    patient_filter = PatientFilter(
        search=request.args.get("search") or None,
        tb_status=tb_status,
        hiv_status=hiv_status,
    )
    patients, total = _state()["repository"].list_patients(
        patient_filter, limit=limit, offset=(page - 1) * limit
    )

    return jsonify({
        "patients": [patient.to_dict() for patient in patients],
        "total": total,
        "page": page,
        "limit": limit,
        "totalPages": math.ceil(total / limit),
    }), 200


@api.route("/api/patients", methods=["POST"])
def create_patient_endpoint() -> tuple[Response, int]:
    """Register a single patient from a JSON body."""
    user_id = request.headers.get(USER_HEADER)
    if not user_id:
        return _message("User ID not found", 400)

    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        return _message("Request body must be a JSON object", 400)

    repository = _state()["repository"]
    fields = map_row(body, user_id)
    fields["patient_id"] = allocate_patient_id(repository.count(), 0)

    try:
        record = repository.create(validate_patient(fields))
    except ValidationError as e:
        return _message("Failed to create patient", 400, error=str(e))
    except PersistenceError as e:
        logger.warning(f"Could not create patient {fields['patient_id']}: {e}")
        return _message("Failed to create patient", 409, error=str(e))

    _record_audit(
        AuditEvent(
            user_id=user_id,
            action="create",
            resource_type="patient",
            resource_id=record.patient_id,
            new_values=record.to_dict(),
            ip_address=request.remote_addr,
            user_agent=request.headers.get("User-Agent"),
        )
    )
    return jsonify(record.to_dict()), 201


@api.route("/api/patients/<patient_id>", methods=["GET"])
def get_patient_endpoint(patient_id: str) -> tuple[Response, int]:
    """Fetch one patient by patient ID."""
    record = _state()["repository"].get_by_patient_id(patient_id)
    if record is None:
        return _message("Patient not found", 404)
    return jsonify(record.to_dict()), 200


@api.route("/api/patients/<patient_id>", methods=["DELETE"])
def delete_patient_endpoint(patient_id: str) -> Any:
    """Deactivate a patient. The record is kept with isActive false."""
    user_id = request.headers.get(USER_HEADER)
    if not user_id:
        return _message("User ID not found", 400)

    repository = _state()["repository"]
    existing = repository.get_by_patient_id(patient_id)
    if existing is None:
        return _message("Patient not found", 404)
    old_values = existing.to_dict()

    try:
        repository.deactivate(patient_id)
    except PersistenceError as e:
        return _message("Patient not found", 404, error=str(e))

    _record_audit(
        AuditEvent(
            user_id=user_id,
            action="delete",
            resource_type="patient",
            resource_id=patient_id,
            old_values=old_values,
            ip_address=request.remote_addr,
            user_agent=request.headers.get("User-Agent"),
        )
    )
    return Response(status=204)


def _optional_enum(vocabulary: Any, value: Optional[str]) -> Any:
    if not value:
        return None
    return vocabulary(value)


def run_server(config: Config, host: Optional[str] = None, port: Optional[int] = None) -> None:
    """Run the registry web server.

    Args:
        config: Registry configuration
        host: Bind address, defaults to config.server.host
        port: Bind port, defaults to config.server.port
    """
    app = create_app(config)
    host = host or config.server.host
    port = port or config.server.port
    logger.info(f"Starting registry server on http://{host}:{port}")
    app.run(host=host, port=port, debug=False, use_reloader=False)
