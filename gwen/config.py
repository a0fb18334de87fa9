"""Configuration helpers for the Gwen assistant backend."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env if present to simplify local development.
load_dotenv()


def _optional_env(key: str) -> str | None:
    """Return the stripped environment variable value, treating blanks as unset."""

    value = os.getenv(key)
    if value is None:
        return None
    value = value.strip()
    return value or None


def _int_from_env(key: str, default: int) -> int:
    """Parse a positive integer from the environment."""

    raw_value = os.getenv(key)
    if raw_value is None:
        return default

    try:
        value = int(raw_value)
    except ValueError as exc:  # pragma: no cover
        raise RuntimeError(f"Environment variable '{key}' must be an integer") from exc

    if value <= 0:
        raise RuntimeError(f"Environment variable '{key}' must be greater than zero")

    return value


def _positive_float_from_env(key: str, default: float) -> float:
    """Parse a strictly positive floating-point value from the environment."""

    raw_value = os.getenv(key)
    if raw_value is None:
        return default

    try:
        value = float(raw_value)
    except ValueError as exc:  # pragma: no cover
        raise RuntimeError(
            f"Environment variable '{key}' must be a floating-point number"
        ) from exc

    if value <= 0:
        raise RuntimeError(f"Environment variable '{key}' must be greater than zero")

    return value


@dataclass(frozen=True)
class Settings:
    """Holds configuration derived from environment variables."""

    data_directory: Path
    shopify_domain: str
    shopify_access_token: str | None
    shopify_api_version: str
    shopify_max_pages: int
    catalog_timeout_seconds: float
    storefront_product_url: str
    order_desk_url: str
    support_email: str
    marketing_email: str
    smtp_host: str | None
    smtp_port: int
    smtp_username: str | None
    smtp_password: str | None
    email_sender: str | None
    database_url: str | None
    chat_log_path: Path | None
    handoff_backup_path: Path
    session_idle_seconds: int
    session_sweep_seconds: int
    session_max_count: int
    history_window: int
    bundle_refund_amount: int

    @property
    def shopify_products_url(self) -> str:
        """Return the first page URL of the Shopify Admin product listing."""

        return (
            f"https://{self.shopify_domain}/admin/api/"
            f"{self.shopify_api_version}/products.json?limit=250"
        )

    @property
    def live_catalog_enabled(self) -> bool:
        """Return ``True`` when credentials for the live catalog are present."""

        return bool(self.shopify_access_token)

    @property
    def async_database_url(self) -> str | None:
        """Return ``DATABASE_URL`` rewritten for the asyncpg driver."""

        url = self.database_url
        if url is None:
            return None
        for prefix in ("postgres://", "postgresql://"):
            if url.startswith(prefix):
                return "postgresql+asyncpg://" + url[len(prefix):]
        return url

    @property
    def email_enabled(self) -> bool:
        """Return ``True`` when an SMTP relay has been configured."""

        return bool(self.smtp_host)


def get_settings() -> Settings:
    """Create settings populated from the environment."""

    data_dir_raw = os.getenv("GWEN_DATA_DIR", "data")
    data_dir = Path(data_dir_raw).expanduser().resolve()

    chat_log_raw = _optional_env("GWEN_CHAT_LOG_PATH")
    chat_log_path = Path(chat_log_raw).expanduser().resolve() if chat_log_raw else None

    backup_raw = _optional_env("GWEN_HANDOFF_BACKUP_PATH")
    if backup_raw is None:
        handoff_backup_path = (data_dir / "logs" / "handoff-backup.jsonl").resolve()
    else:
        handoff_backup_path = Path(backup_raw).expanduser().resolve()

    smtp_username = _optional_env("SMTP_USERNAME")

    return Settings(
        data_directory=data_dir,
        shopify_domain=os.getenv("SHOPIFY_DOMAIN", "bb69ce-b5.myshopify.com"),
        shopify_access_token=_optional_env("SHOPIFY_ACCESS_TOKEN"),
        shopify_api_version=os.getenv("SHOPIFY_API_VERSION", "2024-01"),
        shopify_max_pages=_int_from_env("SHOPIFY_MAX_PAGES", 10),
        catalog_timeout_seconds=_positive_float_from_env("CATALOG_TIMEOUT_SECONDS", 10.0),
        storefront_product_url=os.getenv(
            "STOREFRONT_PRODUCT_URL", "https://mint-outdoor.com/products"
        ).rstrip("/"),
        order_desk_url=os.getenv(
            "ORDER_DESK_URL", "https://mint-outdoor-support-cf235e896ea9.herokuapp.com/"
        ),
        support_email=os.getenv("SUPPORT_EMAIL", "support@mint-outdoor.com"),
        marketing_email=os.getenv("MARKETING_EMAIL", "marketing@mint-outdoor.com"),
        smtp_host=_optional_env("SMTP_HOST"),
        smtp_port=_int_from_env("SMTP_PORT", 587),
        smtp_username=smtp_username,
        smtp_password=_optional_env("SMTP_PASSWORD"),
        email_sender=_optional_env("EMAIL_SENDER") or smtp_username,
        database_url=_optional_env("DATABASE_URL"),
        chat_log_path=chat_log_path,
        handoff_backup_path=handoff_backup_path,
        session_idle_seconds=_int_from_env("SESSION_IDLE_SECONDS", 3600),
        session_sweep_seconds=_int_from_env("SESSION_SWEEP_SECONDS", 3600),
        session_max_count=_int_from_env("SESSION_MAX_COUNT", 10_000),
        history_window=_int_from_env("HISTORY_WINDOW", 10),
        bundle_refund_amount=_int_from_env("BUNDLE_REFUND_AMOUNT", 30),
    )


settings = get_settings()


__all__ = ["Settings", "get_settings", "settings"]
