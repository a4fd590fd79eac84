import logging

from flask import Blueprint, request
from flask_jwt_extended import jwt_required
from utils.decorators import current_user_id
from utils.errors import error_response, success_response
from utils.services import get_location_service

logger = logging.getLogger(__name__)
locations_bp = Blueprint("locations", __name__, url_prefix="/api/locations")


@locations_bp.route("", methods=["POST"])
@jwt_required()
def api_save_location():
    try:
        data = request.get_json(silent=True)
        location = get_location_service().save_location(
            current_user_id(), data if isinstance(data, dict) else {}
        )
        return success_response("Location saved successfully", 201, location=location)
    except Exception as e:
        return error_response(e, "saving location")


@locations_bp.route("", methods=["GET"])
@jwt_required()
def api_list_locations():
    try:
        locations = get_location_service().list_locations(current_user_id())
        return success_response(
            "Locations retrieved successfully", locations=locations, count=len(locations)
        )
    except Exception as e:
        return error_response(e, "fetching locations")


@locations_bp.route("/<int:location_id>", methods=["DELETE"])
@jwt_required()
def api_delete_location(location_id: int):
    try:
        get_location_service().delete_location(location_id, current_user_id())
        return success_response("Location deleted successfully")
    except Exception as e:
        return error_response(e, f"deleting location {location_id}")
