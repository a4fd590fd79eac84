"""SQL queries for authentication and user management."""

USER_COLUMNS = """
        user_id,
        phone_number,
        is_phone_verified,
        pin_hash,
        full_name,
        email,
        location,
        date_of_birth,
        profile_image,
        is_profile_complete,
        role,
        is_active,
        last_login,
        created_at,
        updated_at
"""

# Query to get user by phone number
GET_USER_BY_PHONE = f"""
    SELECT {USER_COLUMNS}
    FROM marketplace.users
    WHERE phone_number = %s
"""

# Query to get user by ID
GET_USER_BY_ID = f"""
    SELECT {USER_COLUMNS}
    FROM marketplace.users
    WHERE user_id = %s
"""

CHECK_PHONE_EXISTS = """
    SELECT EXISTS (SELECT 1 FROM marketplace.users WHERE phone_number = %s)
"""

# Query to create a new user; phone is verified before registration is allowed
INSERT_USER = """
    INSERT INTO marketplace.users (
        phone_number, pin_hash, is_phone_verified, role, created_at, updated_at
    )
    VALUES (%s, %s, true, %s, CURRENT_TIMESTAMP, CURRENT_TIMESTAMP)
    RETURNING user_id
"""

# Query to update user's last login timestamp
UPDATE_USER_LAST_LOGIN = """
    UPDATE marketplace.users
    SET last_login = CURRENT_TIMESTAMP, updated_at = CURRENT_TIMESTAMP
    WHERE user_id = %s
"""

UPDATE_USER_PIN = """
    UPDATE marketplace.users
    SET pin_hash = %s, updated_at = CURRENT_TIMESTAMP
    WHERE user_id = %s
"""

# Location, date of birth and image keep their previous value when not supplied
COMPLETE_USER_PROFILE = """
    UPDATE marketplace.users
    SET
        full_name = %s,
        email = %s,
        location = COALESCE(%s, location),
        date_of_birth = COALESCE(%s, date_of_birth),
        profile_image = COALESCE(%s, profile_image),
        is_profile_complete = true,
        updated_at = CURRENT_TIMESTAMP
    WHERE user_id = %s
"""

# Users whose free-text profile location contains any of the given tokens
FIND_NOTIFICATION_AUDIENCE = """
    SELECT user_id, full_name, location
    FROM marketplace.users
    WHERE is_active = true
        AND is_profile_complete = true
        AND location IS NOT NULL
        AND location ILIKE ANY (%s)
        AND (%s IS NULL OR user_id <> %s)
    ORDER BY user_id
"""
