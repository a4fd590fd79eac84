import os

from auth import AuthService, UserService
from flask import Flask, current_app
from jobs import JobDiscoveryService, JobService
from locations import LocationService
from notifier import JobNotificationFanout, NotificationService
from shared import PostgreSQLDatabase, TaskDispatcher
from verification import PhoneVerificationService, create_twilio_verify_client

EXTENSION_KEY = "marketplace"


def build_db_connection_string() -> str:
    """
    Build PostgreSQL connection string from environment variables.

    Checks DATABASE_URL first, then falls back to individual POSTGRES_* variables.

    Returns:
        PostgreSQL connection string
    """
    # Check for DATABASE_URL first (useful for tests and deployments)
    database_url = os.getenv("DATABASE_URL")
    if database_url:
        return database_url

    # Fall back to individual environment variables
    host = os.getenv("POSTGRES_HOST", "localhost")
    port = os.getenv("POSTGRES_PORT", "5432")
    user = os.getenv("POSTGRES_USER", "postgres")
    password = os.getenv("POSTGRES_PASSWORD", "postgres")
    db = os.getenv("POSTGRES_DB", "marketplace_db")
    ssl_mode = os.getenv("POSTGRES_SSL_MODE", "")

    conn_str = f"postgresql://{user}:{password}@{host}:{port}/{db}"
    if ssl_mode:
        conn_str += f"?sslmode={ssl_mode}"
    return conn_str


def init_services(app: Flask) -> None:
    """
    Build the process-wide collaborators once at start-up.

    The notification dispatcher and the Twilio client are shared by every
    request; services themselves are cheap and built per request.

    Args:
        app: Flask application whose config supplies the settings
    """
    app.extensions[EXTENSION_KEY] = {
        "dispatcher": TaskDispatcher(max_workers=app.config["NOTIFICATION_WORKERS"]),
        "verification_client": create_twilio_verify_client(
            app.config.get("TWILIO_ACCOUNT_SID"),
            app.config.get("TWILIO_AUTH_TOKEN"),
            app.config.get("TWILIO_SERVICE_ID"),
        ),
    }


def shutdown_services(app: Flask) -> None:
    """Drain the notification dispatcher."""
    extension = app.extensions.get(EXTENSION_KEY)
    if extension:
        extension["dispatcher"].shutdown(wait=True)


def _extension(name: str):
    return current_app.extensions[EXTENSION_KEY][name]


def get_database() -> PostgreSQLDatabase:
    """
    Get a database handle that opens a connection per cursor.

    Returns:
        PostgreSQLDatabase instance
    """
    return PostgreSQLDatabase(connection_string=build_db_connection_string())


def get_user_service() -> UserService:
    """
    Get UserService instance with database connection.

    Returns:
        UserService instance
    """
    return UserService(database=get_database())


def get_verification_service() -> PhoneVerificationService:
    """
    Get PhoneVerificationService with the shared Twilio client (if configured).

    Returns:
        PhoneVerificationService instance
    """
    return PhoneVerificationService(
        database=get_database(),
        provider=_extension("verification_client"),
        fallback_code=current_app.config["VERIFICATION_FALLBACK_CODE"],
        ttl_seconds=current_app.config["VERIFICATION_TTL_SECONDS"],
    )


def get_auth_service() -> AuthService:
    """
    Get AuthService instance with user and verification services.

    Returns:
        AuthService instance
    """
    return AuthService(
        user_service=get_user_service(),
        verification_service=get_verification_service(),
    )


def get_notification_service() -> NotificationService:
    """
    Get NotificationService instance with database connection.

    Returns:
        NotificationService instance
    """
    return NotificationService(database=get_database())


def get_notification_fanout() -> JobNotificationFanout:
    return JobNotificationFanout(
        user_service=get_user_service(),
        notification_service=get_notification_service(),
    )


def get_job_service() -> JobService:
    """
    Get JobService instance wired to the background notification fan-out.

    Returns:
        JobService instance
    """
    return JobService(
        database=get_database(),
        notification_fanout=get_notification_fanout(),
        dispatcher=_extension("dispatcher"),
    )


def get_job_discovery_service() -> JobDiscoveryService:
    """
    Get JobDiscoveryService instance with database connection.

    Returns:
        JobDiscoveryService instance
    """
    return JobDiscoveryService(
        database=get_database(),
        page_size=current_app.config["DEFAULT_PAGE_SIZE"],
        max_page_size=current_app.config["MAX_PAGE_SIZE"],
    )


def get_location_service() -> LocationService:
    """
    Get LocationService instance with database connection.

    Returns:
        LocationService instance
    """
    return LocationService(database=get_database())
