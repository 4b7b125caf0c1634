"""
utils/constants.py

Purpose: Centralized static content

- Predefined RW admin accounts
- Reserved usernames
- User-facing auth messages

(Prevents hardcoding across the codebase)
"""

# ============================================================
# ACCOUNTS
# ============================================================

ADMIN_USERNAME = "admin"

ROLE_ADMIN = "admin"
ROLE_USER = "user"

# One admin per RW. Ids are fixed so records and overrides survive restarts.
ADMIN_USERS = (
    {
        "id": "550e8400-e29b-41d4-a716-446655440001",
        "username": ADMIN_USERNAME,
        "name": "Ketua RW 01",
        "role": ROLE_ADMIN,
        "rw": "01",
        "created_at": "2024-01-01T00:00:00Z",
        "must_change_password": True,
        "last_password_change": None,
    },
    {
        "id": "550e8400-e29b-41d4-a716-446655440004",
        "username": ADMIN_USERNAME,
        "name": "Ketua RW 04",
        "role": ROLE_ADMIN,
        "rw": "04",
        "created_at": "2024-01-01T00:00:00Z",
        "must_change_password": True,
        "last_password_change": None,
    },
)

RESERVED_USERNAMES = frozenset({ADMIN_USERNAME})


# ============================================================
# AUTH MESSAGES
# ============================================================

MSG_REGISTER_SUCCESS = "Registration successful. Please log in."
MSG_USERNAME_UNAVAILABLE = "Username is not available"
MSG_USERNAME_TAKEN = "Username is already taken"

MSG_LOGIN_FAILED = "Invalid username or password"
MSG_LOGOUT_SUCCESS = "Logged out"

MSG_NO_SESSION = "User not found"
MSG_OLD_PASSWORD_WRONG = "Current password is incorrect"
MSG_PASSWORD_TOO_SHORT = "New password must be at least {min_length} characters"
MSG_PASSWORD_UNCHANGED = "New password must differ from the current password"
MSG_PASSWORD_CHANGED = "Password changed successfully"
