"""
Core constants — **Single Source of Truth** for project-wide magic numbers.

Any business rule that references a numeric constant should import it from
here instead of hardcoding.  This avoids drift between the engine, the
serializers, and the tests.
"""

# ── Adjudication evidence requirements ──────────────────────────────
# Adjourn / approve / reject all require a written remark of at least this
# many characters (after trimming).  Administrators are NOT exempt.
MIN_DECISION_REMARK_LENGTH: int = 10

# ── Tracking codes ─────────────────────────────────────────────────
# Externally visible case identifier: ``EPD-`` + 8 upper-case hex chars.
TRACKING_CODE_PREFIX: str = "EPD"
TRACKING_CODE_BYTES: int = 4

# ── Hearing reminders ──────────────────────────────────────────────
# Reminder e-mails go out for active hearings starting inside
# [lead - window, lead + window] minutes from now.
HEARING_REMINDER_LEAD_MINUTES: int = 60
HEARING_REMINDER_WINDOW_MINUTES: int = 5

# ── Applicant re-authentication ────────────────────────────────────
# Lifetime of the sign-in link e-mailed when an application is returned
# as incomplete.
REAUTH_LINK_LIFETIME_MINUTES: int = 60
