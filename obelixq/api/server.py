"""HTTP API for the booking core.

Flask application factory; ``create_app()`` is the composition root that
builds the single ledger of the process and injects it everywhere.

Endpoints:
    GET   /health
    GET   /businesses
    GET   /businesses/<id>/services
    GET   /businesses/<id>/slots?date=YYYY-MM-DD&time_of_day=morning
    POST  /appointments
    GET   /appointments/<id>
    PATCH /appointments/<id>/status
    POST  /appointments/<id>/cancel
    GET   /users/<id>/appointments?status=pending

Run with: obelixq-api  (or python -m obelixq.api.server)
"""
from datetime import datetime
from http import HTTPStatus
from typing import Optional

from flask import Blueprint, Flask, current_app, jsonify, request
from flask_cors import CORS
from pydantic import ValidationError
from werkzeug.exceptions import HTTPException

from obelixq import config
from obelixq.api.models import (
    AppointmentResponse,
    CreateAppointmentRequest,
    ErrorResponse,
    SlotsResponse,
    StatusUpdateRequest,
)
from obelixq.availability import TimeOfDay
from obelixq.catalog import InMemoryCatalog, load_catalog
from obelixq.events import EventBus
from obelixq.ledger import BookingLedger
from obelixq.logging_config import RequestIDMiddleware, get_logger, setup_structured_logging
from obelixq.models import AppointmentStatus
from obelixq.notifications import NotificationDispatcher, Sender
from obelixq.results import ErrorKind, Result
from obelixq.service import BookingService

logger = get_logger(__name__)

bp = Blueprint("booking", __name__)

STATUS_BY_ERROR = {
    ErrorKind.VALIDATION: HTTPStatus.BAD_REQUEST,
    ErrorKind.NOT_FOUND: HTTPStatus.NOT_FOUND,
    ErrorKind.SLOT_UNAVAILABLE: HTTPStatus.CONFLICT,
    ErrorKind.INVALID_TRANSITION: HTTPStatus.CONFLICT,
}


def _service() -> BookingService:
    return current_app.extensions["obelixq"]["service"]


def _catalog() -> InMemoryCatalog:
    return current_app.extensions["obelixq"]["catalog"]


def _error(kind: ErrorKind, message: str, **fields):
    body = ErrorResponse(error=message, code=kind.value, **fields)
    return jsonify(body.model_dump(mode="json", exclude_none=True)), STATUS_BY_ERROR[kind]


def _failure(result: Result, **fields):
    return _error(result.error, result.message, **fields)


def _validation_error(exc: ValidationError):
    logger.warning("validation_error", errors=exc.errors(include_url=False))
    return _error(
        ErrorKind.VALIDATION,
        "Invalid request",
        detail=exc.errors(include_url=False, include_context=False),
    )


@bp.route('/health', methods=['GET'])
def health_check():
    """GET /health - Health check endpoint."""
    return jsonify({
        "success": True,
        "status": "healthy",
        "total_appointments": len(_service().ledger),
        "timestamp": datetime.now().isoformat()
    })


@bp.route('/businesses', methods=['GET'])
def list_businesses():
    """GET /businesses - Active businesses."""
    businesses = _catalog().list_businesses()
    return jsonify({
        "success": True,
        "businesses": [b.model_dump(mode="json") for b in businesses],
        "total": len(businesses)
    })


@bp.route('/businesses/<business_id>/services', methods=['GET'])
def list_services(business_id):
    """GET /businesses/biz-001/services - Active services of one business."""
    if _catalog().find_business(business_id) is None:
        return _error(ErrorKind.NOT_FOUND, f"Business '{business_id}' not found")

    services = _catalog().list_services(business_id)
    return jsonify({
        "success": True,
        "services": [s.model_dump(mode="json") for s in services],
        "total": len(services)
    })


@bp.route('/businesses/<business_id>/slots', methods=['GET'])
def get_available_slots(business_id):
    """GET /businesses/biz-001/slots?date=2025-12-15&time_of_day=morning"""
    raw_date = request.args.get('date')
    if not raw_date:
        return _error(ErrorKind.VALIDATION, "date parameter is required")

    try:
        day = datetime.strptime(raw_date, "%Y-%m-%d").date()
    except ValueError:
        return _error(ErrorKind.VALIDATION, "Invalid date format. Use YYYY-MM-DD")

    try:
        time_of_day = TimeOfDay(request.args.get('time_of_day', TimeOfDay.ANY.value))
    except ValueError:
        return _error(ErrorKind.VALIDATION, "time_of_day must be one of: morning, afternoon, any")

    result = _service().available_slots(business_id, day, time_of_day)
    if not result.success:
        return _failure(result)

    body = SlotsResponse(
        business_id=business_id,
        date=day.isoformat(),
        available_slots=[slot.isoformat() for slot in result.value],
        total_slots=len(result.value),
    )
    return jsonify(body.model_dump(mode="json"))


@bp.route('/appointments', methods=['POST'])
def create_appointment():
    """POST /appointments - Reserve a slot.

    Expected JSON body:
    {
        "user_id": "user-001",
        "business_id": "biz-001",
        "service_id": "srv-001",
        "scheduled_at": "2025-12-15T10:30:00",
        "notes": "optional"
    }
    """
    data = request.get_json(silent=True)
    if not data:
        return _error(ErrorKind.VALIDATION, "Request body is required")

    try:
        payload = CreateAppointmentRequest.model_validate(data)
    except ValidationError as e:
        return _validation_error(e)

    result = _service().book(
        user_id=payload.user_id,
        business_id=payload.business_id,
        service_id=payload.service_id,
        scheduled_at=payload.scheduled_at,
        notes=payload.notes,
    )

    if not result.success:
        if result.error == ErrorKind.SLOT_UNAVAILABLE:
            alternatives = _service().alternatives(payload.business_id, payload.scheduled_at)
            return _failure(result, alternatives=[slot.isoformat() for slot in alternatives])
        return _failure(result)

    body = AppointmentResponse(
        appointment=result.value,
        message=f"Appointment requested! Reference: {result.value.id}",
    )
    return jsonify(body.model_dump(mode="json")), HTTPStatus.CREATED


@bp.route('/appointments/<appointment_id>', methods=['GET'])
def get_appointment(appointment_id):
    """GET /appointments/<id> - Appointment with business, service and user."""
    result = _service().detail(appointment_id)
    if not result.success:
        return _failure(result)

    return jsonify({
        "success": True,
        "detail": result.value.model_dump(mode="json")
    })


@bp.route('/appointments/<appointment_id>/status', methods=['PATCH'])
def update_status(appointment_id):
    """PATCH /appointments/<id>/status - {"status": "confirmed"}"""
    data = request.get_json(silent=True)
    if not data:
        return _error(ErrorKind.VALIDATION, "Request body is required")

    try:
        payload = StatusUpdateRequest.model_validate(data)
    except ValidationError as e:
        return _validation_error(e)

    result = _service().change_status(appointment_id, payload.status)
    if not result.success:
        return _failure(result)

    body = AppointmentResponse(
        appointment=result.value,
        message=f"Appointment {appointment_id} is now {result.value.status.value}",
    )
    return jsonify(body.model_dump(mode="json"))


@bp.route('/appointments/<appointment_id>/cancel', methods=['POST'])
def cancel_appointment(appointment_id):
    """POST /appointments/<id>/cancel - Cancel (status change, never a delete)."""
    result = _service().cancel(appointment_id)
    if not result.success:
        return _failure(result)

    body = AppointmentResponse(
        appointment=result.value,
        message=f"Appointment {appointment_id} has been cancelled",
    )
    return jsonify(body.model_dump(mode="json"))


@bp.route('/users/<user_id>/appointments', methods=['GET'])
def list_user_appointments(user_id):
    """GET /users/<id>/appointments?status=pending - Latest first."""
    raw_status = request.args.get('status')
    status = None
    if raw_status:
        try:
            status = AppointmentStatus(raw_status.lower())
        except ValueError:
            allowed = ", ".join(s.value for s in AppointmentStatus)
            return _error(ErrorKind.VALIDATION, f"status must be one of: {allowed}")

    appointments = _service().appointments_for(user_id, status)
    return jsonify({
        "success": True,
        "appointments": [a.model_dump(mode="json") for a in appointments],
        "total": len(appointments)
    })


def _handle_unexpected(exc: Exception):
    """Catch-all handler for unexpected exceptions (ledger integrity, bugs)."""
    if isinstance(exc, HTTPException):
        return exc

    logger.exception("unexpected_error", error=str(exc))
    body = ErrorResponse(
        error="Internal Server Error",
        code="INTERNAL_ERROR",
        detail="An unexpected error occurred. Please try again later.",
    )
    return jsonify(body.model_dump(exclude_none=True)), HTTPStatus.INTERNAL_SERVER_ERROR


def create_app(
    catalog: Optional[InMemoryCatalog] = None,
    settings: Optional[config.Settings] = None,
    sender: Optional[Sender] = None,
    clock=datetime.now,
) -> Flask:
    """
    Build the Flask app and its single ledger.

    Args:
        catalog: Collaborator lookups; loaded from settings.seed_file if None
        settings: Runtime settings; read from the environment if None
        sender: Notification delivery callable (defaults to logging)
        clock: Time source shared by the ledger and the service layer

    Returns:
        Configured Flask application
    """
    settings = settings or config.load_settings()

    if catalog is None:
        catalog = load_catalog(settings.seed_file) if settings.seed_file else InMemoryCatalog()

    event_bus = EventBus()
    NotificationDispatcher(catalog, sender=sender).attach(event_bus)

    ledger = BookingLedger(
        catalog,
        event_bus=event_bus,
        strict_transitions=settings.strict_transitions,
        clock=clock,
    )
    service = BookingService(
        ledger,
        catalog,
        simulated_latency_ms=settings.simulated_latency_ms,
        clock=clock,
    )

    app = Flask(__name__)
    CORS(app, expose_headers=["X-Request-ID"])
    app.extensions["obelixq"] = {
        "catalog": catalog,
        "event_bus": event_bus,
        "ledger": ledger,
        "service": service,
        "settings": settings,
    }
    app.register_blueprint(bp)
    app.register_error_handler(Exception, _handle_unexpected)
    app.wsgi_app = RequestIDMiddleware(app.wsgi_app)

    return app


def print_startup_info(app: Flask) -> None:
    """Print server startup information."""
    settings = app.extensions["obelixq"]["settings"]
    catalog = app.extensions["obelixq"]["catalog"]

    print("=" * 70)
    print("OBELIXQ BOOKING API")
    print("=" * 70)
    print(f"\nServer: http://localhost:{settings.api_port}")
    print(f"Businesses: {len(catalog.list_businesses())}")
    for business in catalog.list_businesses():
        print(f"   - {business.name} ({business.opening_time} - {business.closing_time})")
    print(f"\nSlots: every {config.SLOT_DURATION_MINUTES} minutes")
    print(f"Strict transitions: {settings.strict_transitions}")
    print(f"Simulated latency: {settings.simulated_latency_ms} ms")
    print("=" * 70)


def main() -> None:
    settings = config.load_settings()
    setup_structured_logging(settings.log_level)
    app = create_app(settings=settings)
    print_startup_info(app)
    app.run(host=settings.api_host, port=settings.api_port, threaded=True)


if __name__ == '__main__':
    main()
