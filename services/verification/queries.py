"""SQL queries for phone verification."""

INSERT_PHONE_VERIFICATION = """
    INSERT INTO marketplace.phone_verifications (
        phone_number, verification_code, provider_ref, expires_at
    )
    VALUES (%s, %s, %s, NOW() + make_interval(secs => %s))
    RETURNING verification_id
"""

# Latest record still awaiting a code for this phone
GET_LATEST_PENDING_VERIFICATION = """
    SELECT
        verification_id,
        phone_number,
        verification_code,
        is_verified,
        attempts,
        expires_at,
        provider_ref,
        expires_at > NOW() AS is_unexpired
    FROM marketplace.phone_verifications
    WHERE phone_number = %s AND is_verified = false
    ORDER BY created_at DESC, verification_id DESC
    LIMIT 1
"""

INCREMENT_VERIFICATION_ATTEMPTS = """
    UPDATE marketplace.phone_verifications
    SET attempts = LEAST(attempts + 1, 5), updated_at = NOW()
    WHERE verification_id = %s
"""

MARK_VERIFICATION_VERIFIED = """
    UPDATE marketplace.phone_verifications
    SET is_verified = true, updated_at = NOW()
    WHERE verification_id = %s
"""

# Provider approved a code we hold no record for
INSERT_VERIFIED_VERIFICATION = """
    INSERT INTO marketplace.phone_verifications (
        phone_number, verification_code, provider_ref, is_verified, expires_at
    )
    VALUES (%s, %s, %s, true, NOW() + make_interval(secs => %s))
"""

IS_PHONE_VERIFIED = """
    SELECT EXISTS (
        SELECT 1
        FROM marketplace.phone_verifications
        WHERE phone_number = %s AND is_verified = true AND expires_at > NOW()
    )
"""

DELETE_EXPIRED_VERIFICATIONS = """
    DELETE FROM marketplace.phone_verifications
    WHERE expires_at < NOW()
"""
