import os



def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_list(value: str | None, default: list[str]) -> list[str]:
    if not value:
        return default
    return [item.strip() for item in value.split(",") if item.strip()]

APP_ENV = os.getenv("APP_ENV", "development")
SQL_ECHO = _get_bool(os.getenv("SQL_ECHO"), default=False)

CORS_ALLOWED_ORIGINS = _get_list(os.getenv("CORS_ALLOWED_ORIGINS"), ["http://localhost:5173"])

JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRES_MINUTES = int(os.getenv("JWT_EXPIRES_MINUTES", "60"))

# "allow" keeps overlapping windows for the same tutor and date, "reject" refuses them.
SLOT_OVERLAP_POLICY = os.getenv("SLOT_OVERLAP_POLICY", "allow").strip().lower()
SLOT_OVERLAP_POLICIES = {"allow", "reject"}

UNKNOWN_TUTOR_NAME = os.getenv("UNKNOWN_TUTOR_NAME", "Unknown")
DEFAULT_TUTOR_COLOR = os.getenv("DEFAULT_TUTOR_COLOR", "#0A4D4A")
UNKNOWN_PARENT_NAME = os.getenv("UNKNOWN_PARENT_NAME", "Parent")
UNKNOWN_STUDENT_NAME = os.getenv("UNKNOWN_STUDENT_NAME", "Student")

def validate_runtime_config() -> None:
    if APP_ENV.lower() == "production" and JWT_SECRET_KEY == "change-me":
        raise RuntimeError("JWT_SECRET_KEY must be set in production.")
    if SLOT_OVERLAP_POLICY not in SLOT_OVERLAP_POLICIES:
        raise RuntimeError(
            f"SLOT_OVERLAP_POLICY must be one of {sorted(SLOT_OVERLAP_POLICIES)}, got {SLOT_OVERLAP_POLICY!r}."
        )
