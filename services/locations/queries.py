"""SQL queries for saved locations."""

LOCATION_COLUMNS = """
        location_id,
        user_id,
        name,
        full_address,
        latitude,
        longitude,
        address_details,
        created_at,
        updated_at
"""

INSERT_LOCATION = f"""
    INSERT INTO marketplace.locations (
        user_id, name, full_address, latitude, longitude, address_details
    )
    VALUES (%s, %s, %s, %s, %s, %s)
    RETURNING {LOCATION_COLUMNS}
"""

GET_LOCATION_BY_NAME = """
    SELECT location_id
    FROM marketplace.locations
    WHERE user_id = %s AND name = %s
"""

GET_USER_LOCATIONS = f"""
    SELECT {LOCATION_COLUMNS}
    FROM marketplace.locations
    WHERE user_id = %s
    ORDER BY created_at DESC, location_id DESC
"""

GET_LOCATION_BY_ID = f"""
    SELECT {LOCATION_COLUMNS}
    FROM marketplace.locations
    WHERE location_id = %s
"""

DELETE_LOCATION = """
    DELETE FROM marketplace.locations
    WHERE location_id = %s AND user_id = %s
"""
