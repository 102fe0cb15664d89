"""
Configuration module for loading environment variables.
Pricing, currency and remote client settings are read once at import time.
"""
import os
from decimal import Decimal
from typing import Optional


class Config:
    """Application configuration loaded from environment variables."""

    # AWS client configuration (credentials come from the standard boto3 chain)
    AWS_PROFILE: Optional[str] = os.getenv("AWS_PROFILE") or None
    AWS_PRICING_REGION: str = os.getenv("AWS_PRICING_REGION", "us-east-1")
    COST_EXPLORER_REGION: str = os.getenv("COST_EXPLORER_REGION", "us-east-1")
    AWS_CONNECT_TIMEOUT: int = int(os.getenv("AWS_CONNECT_TIMEOUT", "10"))
    AWS_READ_TIMEOUT: int = int(os.getenv("AWS_READ_TIMEOUT", "10"))

    # Currency configuration
    SOURCE_CURRENCY: str = os.getenv("SOURCE_CURRENCY", "USD")
    DISPLAY_CURRENCY: str = os.getenv("DISPLAY_CURRENCY", "JPY")
    EXCHANGE_RATE: Decimal = Decimal(os.getenv("EXCHANGE_RATE", "150"))

    # Pricing configuration
    HOURS_PER_MONTH: int = int(os.getenv("HOURS_PER_MONTH", "730"))  # Standard assumption: 24/7 operation
    PRODUCTS_PAGE_SIZE: int = int(os.getenv("PRODUCTS_PAGE_SIZE", "100"))
    MAX_CATALOG_PAGES: int = int(os.getenv("MAX_CATALOG_PAGES", "1000"))

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    @classmethod
    def validate(cls) -> None:
        """
        Validates that configuration values are usable.

        Raises:
            ValueError: If any configuration value is missing or invalid.
        """
        if cls.EXCHANGE_RATE <= 0:
            raise ValueError(f"EXCHANGE_RATE must be positive (got: {cls.EXCHANGE_RATE})")
        if cls.HOURS_PER_MONTH <= 0:
            raise ValueError(f"HOURS_PER_MONTH must be positive (got: {cls.HOURS_PER_MONTH})")
        if cls.MAX_CATALOG_PAGES <= 0:
            raise ValueError(f"MAX_CATALOG_PAGES must be positive (got: {cls.MAX_CATALOG_PAGES})")
        if not 1 <= cls.PRODUCTS_PAGE_SIZE <= 100:
            # Price List API rejects MaxResults above 100
            raise ValueError(
                f"PRODUCTS_PAGE_SIZE must be between 1 and 100 (got: {cls.PRODUCTS_PAGE_SIZE})"
            )
        if not cls.DISPLAY_CURRENCY:
            raise ValueError("DISPLAY_CURRENCY is required")


config = Config()
