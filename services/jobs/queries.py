"""SQL queries for job postings, discovery and interest tracking."""

# Poster summary and interest list are joined onto every job row so that the
# public listings, the owner view and the detail view share one row shape.
JOB_SELECT = """
    SELECT
        j.job_id,
        j.title,
        j.description,
        j.cost,
        j.job_type,
        j.location,
        j.urgency,
        j.scheduled_date,
        j.scheduled_time,
        j.response_preference,
        j.attachments,
        j.status,
        j.posted_by,
        j.is_active,
        j.completed_at,
        j.created_at,
        j.updated_at,
        u.phone_number AS poster_phone_number,
        u.full_name AS poster_full_name,
        u.email AS poster_email,
        u.location AS poster_location,
        COALESCE(
            (
                SELECT json_agg(
                    json_build_object('user_id', ji.user_id, 'noted_at', ji.noted_at)
                    ORDER BY ji.noted_at
                )
                FROM marketplace.job_interests ji
                WHERE ji.job_id = j.job_id
            ),
            '[]'::json
        ) AS interested_users
    FROM marketplace.jobs j
    LEFT JOIN marketplace.users u
        ON u.user_id = j.posted_by
"""

COUNT_JOBS = """
    SELECT COUNT(*)
    FROM marketplace.jobs j
    LEFT JOIN marketplace.users u
        ON u.user_id = j.posted_by
"""

GET_JOB_BY_ID = JOB_SELECT + " WHERE j.job_id = %s"

# Address sub-fields of both location shapes; absent keys yield NULL
ADDRESS_FIELDS = (
    "j.location->>'name'",
    "j.location->>'full_address'",
    "j.location->'source'->>'name'",
    "j.location->'source'->>'full_address'",
    "j.location->'destination'->>'name'",
    "j.location->'destination'->>'full_address'",
)
TEXT_FIELDS = ("j.title", "j.description")

INSERT_JOB = """
    INSERT INTO marketplace.jobs (
        title,
        description,
        cost,
        job_type,
        location,
        urgency,
        scheduled_date,
        scheduled_time,
        response_preference,
        attachments,
        posted_by,
        status,
        is_active,
        created_at,
        updated_at
    )
    VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, 'open', true, NOW(), NOW())
    RETURNING job_id
"""

# {assignments} is built from the allow-listed column names in job_payload
UPDATE_JOB_TEMPLATE = """
    UPDATE marketplace.jobs
    SET {assignments},
        status = 'open',
        is_active = true,
        updated_at = NOW()
    WHERE job_id = %s
      AND posted_by = %s
    RETURNING job_id
"""

DEACTIVATE_JOB = """
    UPDATE marketplace.jobs
    SET is_active = false, updated_at = NOW()
    WHERE job_id = %s AND posted_by = %s
"""

UPDATE_JOB_STATUS = """
    UPDATE marketplace.jobs
    SET status = %s,
        completed_at = CASE WHEN %s = 'completed' THEN NOW() ELSE completed_at END,
        updated_at = NOW()
    WHERE job_id = %s AND posted_by = %s
    RETURNING job_id, status, completed_at
"""

# Add-if-absent: the primary key on (job_id, user_id) makes a repeated
# interest a no-op that returns no row.
INSERT_JOB_INTEREST = """
    INSERT INTO marketplace.job_interests (job_id, user_id, noted_at)
    VALUES (%s, %s, NOW())
    ON CONFLICT (job_id, user_id) DO NOTHING
    RETURNING noted_at
"""

# Candidates for the hot/normal feed sweep: live listings dated today or earlier
GET_ACTIVE_OPEN_JOB_SCHEDULES = """
    SELECT job_id, scheduled_date, scheduled_time
    FROM marketplace.jobs
    WHERE status = 'open'
      AND is_active = true
      AND scheduled_date <= %s
"""

# Administrative sweep: every open job, active or not
COUNT_OPEN_JOBS = """
    SELECT COUNT(*) FROM marketplace.jobs WHERE status = 'open'
"""

GET_OPEN_JOB_SCHEDULES = """
    SELECT job_id, scheduled_date, scheduled_time
    FROM marketplace.jobs
    WHERE status = 'open'
      AND scheduled_date <= %s
"""

DEACTIVATE_EXPIRED_JOBS = """
    UPDATE marketplace.jobs
    SET is_active = false, updated_at = NOW()
    WHERE job_id = ANY(%s)
      AND status = 'open'
      AND is_active = true
"""

CANCEL_EXPIRED_JOBS = """
    UPDATE marketplace.jobs
    SET is_active = false, status = 'cancelled', updated_at = NOW()
    WHERE job_id = ANY(%s)
      AND status = 'open'
"""
