from dataclasses import dataclass


@dataclass(frozen=True)
class PasswordResetPolicy:
    """Limits and lifetimes for the password reset flow"""

    otp_length: int = 6
    otp_ttl_seconds: int = 10 * 60
    verified_ttl_seconds: int = 5 * 60
    max_attempts: int = 5
    start_rate_limit: int = 3
    verify_rate_limit: int = 5
    rate_limit_window_seconds: int = 15 * 60

    @classmethod
    def from_config(cls, config) -> "PasswordResetPolicy":
        return cls(
            otp_length=int(config.RESET_OTP_LENGTH),
            otp_ttl_seconds=int(config.RESET_OTP_TTL_SECONDS),
            verified_ttl_seconds=int(config.RESET_VERIFIED_TTL_SECONDS),
            max_attempts=int(config.RESET_MAX_ATTEMPTS),
            start_rate_limit=int(config.RESET_START_RATE_LIMIT),
            verify_rate_limit=int(config.RESET_VERIFY_RATE_LIMIT),
            rate_limit_window_seconds=int(config.RESET_RATE_LIMIT_WINDOW_SECONDS),
        )
