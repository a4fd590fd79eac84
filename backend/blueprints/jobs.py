import logging

from flask import Blueprint, request
from flask_jwt_extended import jwt_required
from jobs import JobFilters
from utils.decorators import admin_required, current_user_id
from utils.errors import error_response, success_response
from utils.services import get_job_discovery_service, get_job_service

logger = logging.getLogger(__name__)
jobs_bp = Blueprint("jobs", __name__, url_prefix="/api/jobs")


def _request_payload() -> dict:
    """JSON body, or form fields for multipart clients."""
    data = request.get_json(silent=True)
    if data is not None:
        return data if isinstance(data, dict) else {}
    payload = request.form.to_dict()
    attachments = request.form.getlist("attachments")
    if attachments:
        payload["attachments"] = attachments
    return payload


def _listing_args() -> dict:
    return {
        "sort_by": request.args.get("sort_by"),
        "sort_order": request.args.get("sort_order"),
        "page": request.args.get("page"),
        "limit": request.args.get("limit"),
    }


@jobs_bp.route("", methods=["GET"])
@jwt_required(optional=True)
def api_list_jobs():
    """Public job listing: active, open jobs with optional filters."""
    try:
        filters = JobFilters(
            urgency=request.args.get("urgency") or None,
            job_type=request.args.get("job_type") or None,
            location=request.args.get("location") or None,
            search=request.args.get("search") or None,
        )
        result = get_job_discovery_service().list_jobs(filters, **_listing_args())
        return success_response(**result)
    except Exception as e:
        return error_response(e, "fetching jobs")


def _urgency_feed(urgency: str):
    try:
        result = get_job_discovery_service().list_by_urgency_near_location(
            urgency=urgency,
            location=request.args.get("location", ""),
            exclude_user_id=current_user_id(),
            **_listing_args(),
        )
        return success_response(**result)
    except Exception as e:
        return error_response(e, f"fetching {urgency.lower()} jobs")


@jobs_bp.route("/hot", methods=["GET"])
@jwt_required(optional=True)
def api_hot_jobs():
    """Urgent jobs posted by users near the given location."""
    return _urgency_feed("Urgent")


@jobs_bp.route("/normal", methods=["GET"])
@jwt_required(optional=True)
def api_normal_jobs():
    """Normal-urgency jobs posted by users near the given location."""
    return _urgency_feed("Normal")


@jobs_bp.route("/type/<job_type>", methods=["GET"])
@jwt_required(optional=True)
def api_jobs_by_type(job_type: str):
    try:
        filters = JobFilters(job_type=job_type)
        result = get_job_discovery_service().list_jobs(filters, **_listing_args())
        result["job_type"] = job_type
        return success_response(**result)
    except Exception as e:
        return error_response(e, f"fetching {job_type} jobs")


@jobs_bp.route("/my-jobs", methods=["GET"])
@jwt_required()
def api_my_jobs():
    """The caller's own postings, including closed and deactivated ones."""
    try:
        result = get_job_discovery_service().list_my_jobs(
            owner_id=current_user_id(),
            status=request.args.get("status") or None,
            **_listing_args(),
        )
        return success_response(**result)
    except Exception as e:
        return error_response(e, "fetching my jobs")


@jobs_bp.route("", methods=["POST"])
@jwt_required()
def api_create_job():
    try:
        job = get_job_service().create_job(current_user_id(), _request_payload())
        return success_response("Job created successfully", 201, job=job)
    except Exception as e:
        return error_response(e, "creating job")


@jobs_bp.route("/<int:job_id>", methods=["GET"])
@jwt_required(optional=True)
def api_get_job(job_id: int):
    try:
        job = get_job_service().get_job(job_id)
        return success_response(job=job)
    except Exception as e:
        return error_response(e, f"fetching job {job_id}")


@jobs_bp.route("/<int:job_id>", methods=["PUT"])
@jwt_required()
def api_update_job(job_id: int):
    """Edit a job; the job goes back to open and active."""
    try:
        job = get_job_service().update_job(job_id, current_user_id(), _request_payload())
        return success_response("Job updated successfully", job=job)
    except Exception as e:
        return error_response(e, f"updating job {job_id}")


@jobs_bp.route("/<int:job_id>", methods=["DELETE"])
@jwt_required()
def api_delete_job(job_id: int):
    try:
        get_job_service().delete_job(job_id, current_user_id())
        return success_response("Job deleted successfully")
    except Exception as e:
        return error_response(e, f"deleting job {job_id}")


@jobs_bp.route("/<int:job_id>/status", methods=["PUT"])
@jwt_required()
def api_update_job_status(job_id: int):
    try:
        status = (request.get_json(silent=True) or {}).get("status")
        result = get_job_service().update_status(job_id, current_user_id(), status)
        return success_response("Job status updated successfully", job=result)
    except Exception as e:
        return error_response(e, f"updating status of job {job_id}")


@jobs_bp.route("/<int:job_id>/interest", methods=["POST"])
@jwt_required()
def api_record_interest(job_id: int):
    """Express interest in a show_interest job; repeating it is harmless."""
    try:
        result = get_job_service().record_interest(job_id, current_user_id())
        message = (
            "Interest already recorded"
            if result["already_recorded"]
            else "Interest recorded successfully"
        )
        return success_response(message, **result)
    except Exception as e:
        return error_response(e, f"recording interest in job {job_id}")


@jobs_bp.route("/expire", methods=["POST"])
@admin_required
def api_expire_jobs():
    """Cancel every open job whose scheduled time has passed."""
    try:
        result = get_job_discovery_service().expire_old_jobs()
        return success_response("Expired jobs updated", **result)
    except Exception as e:
        return error_response(e, "expiring old jobs")
