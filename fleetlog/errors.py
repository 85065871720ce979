from flask import jsonify


class FleetlogError(Exception):
    code = "error"
    status = 400

    def __init__(self, message=None):
        super().__init__(message or self.code)


class BackendUnavailable(FleetlogError):
    code = "backend_unavailable"
    status = 503


class NotFound(FleetlogError):
    code = "not_found"
    status = 404


class InvalidInput(FleetlogError):
    code = "invalid_input"
    status = 400


class ConflictActiveTrip(FleetlogError):
    code = "active_trip_exists"
    status = 409


class DuplicateUsername(FleetlogError):
    code = "username_taken"
    status = 409


class SelfDeletionForbidden(FleetlogError):
    code = "cannot_delete_self"
    status = 403


def register_error_handlers(app):
    @app.errorhandler(FleetlogError)
    def _fleetlog_error(e):
        return jsonify(ok=False, error=e.code, message=str(e)), e.status
