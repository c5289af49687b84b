from flask import Blueprint, current_app, jsonify, request

from bracketflow.exceptions import (
    ServiceError, ValidationError, NotFoundError, BusinessRuleError, StoreUnavailable
)

# JSON API blueprint for configuration input and result entry
api_bp = Blueprint('api_bp', __name__, url_prefix='/api')


def get_service(name):
    """Look up a service in the application's service container"""
    return current_app.extensions['bracketflow'].get_service(name)


def get_json_body():
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def require_field(data, field):
    if field not in data or data[field] is None:
        raise ValidationError(f"Field '{field}' is required", field)
    return data[field]


def status_for(error):
    if isinstance(error, StoreUnavailable):
        return 503
    if isinstance(error, NotFoundError):
        return 404
    if isinstance(error, ValidationError):
        return 400
    if isinstance(error, BusinessRuleError):
        return 409
    return 500


@api_bp.errorhandler(ServiceError)
def handle_service_error(error):
    status = status_for(error)
    if status >= 500:
        current_app.logger.error(f"{error.code}: {error.message}")
    else:
        current_app.logger.info(f"{error.code}: {error.message}")
    return jsonify(error.to_dict()), status


# Import route modules to register them with api_bp
import routes.pools
import routes.brackets
import routes.games
import routes.standings
