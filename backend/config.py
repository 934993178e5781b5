"""
Configuration management for the ZAMS Mart storefront API.

Loads settings from .env via pydantic-settings.

Security notes:
    - validate_production_settings() enforces strict CORS and a JWT secret in production
    - ADMIN_EMAILS bootstraps the first back-office accounts at signup
"""
import logging

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List

logger = logging.getLogger(__name__)


def _split_csv(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # ── Database ────────────────────────────────────────────────────
    database_url: str = "sqlite:///./data/zams_mart.db"

    # ── Application ─────────────────────────────────────────────────
    environment: str = "development"
    store_name: str = "ZAMS Mart"

    # ── Auth (JWT + bcrypt) ─────────────────────────────────────────
    jwt_secret: str = ""
    jwt_issuer: str = "zams-mart-api"
    jwt_access_ttl_minutes: int = 60
    bcrypt_rounds: int = 12
    min_password_length: int = 6
    admin_emails: str = ""

    # ── Pricing / Shipping ──────────────────────────────────────────
    currency: str = "NGN"
    free_shipping_threshold: float = 50_000.0   # strictly above this ships free
    flat_shipping_fee: float = 2_500.0
    shipping_states: str = "Lagos,Abuja,Rivers,Oyo,Kano"

    # ── Bank Transfer ───────────────────────────────────────────────
    bank_name: str = "GTBank"
    bank_account_name: str = "ZAMS Mart Limited"
    bank_account_number: str = "0123456789"

    # ── Proof-of-payment storage ────────────────────────────────────
    upload_dir: str = "./data/uploads"
    proof_bucket: str = "payment-proofs"
    max_proof_bytes: int = 5 * 1024 * 1024  # 5 MB

    # ── CORS ────────────────────────────────────────────────────────
    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000,http://localhost:5173,http://127.0.0.1:5173"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # allow unknown .env keys without crashing
    )

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def admin_emails_list(self) -> List[str]:
        return [email.lower() for email in _split_csv(self.admin_emails)]

    @property
    def shipping_states_list(self) -> List[str]:
        return _split_csv(self.shipping_states)

    def validate_production_settings(self):
        """
        Validate settings for production safety.

        Called during app startup. Production refuses wildcard CORS and a missing
        JWT secret; other environments only log warnings.
        """
        if self.environment == "production":
            if "*" in self.cors_origins:
                raise ValueError(
                    "CORS_ORIGINS must not contain '*' in production. "
                    "Set explicit allowed origins."
                )
            if not self.jwt_secret:
                raise ValueError(
                    "JWT_SECRET must be set in production. "
                    "It is used to sign customer and admin access tokens."
                )
            logger.info("Production settings validated")
        else:
            warnings = []
            if not self.jwt_secret:
                warnings.append("JWT_SECRET is empty (login and signup will fail)")
            if "*" in self.cors_origins:
                warnings.append("CORS_ORIGINS contains '*' (open access)")
            if not self.admin_emails_list:
                warnings.append("ADMIN_EMAILS is empty (no account can reach /admin)")
            for w in warnings:
                logger.warning(w)


# Global settings instance
settings = Settings()
