"""Business configuration domain service."""

import base64
import logging
from dataclasses import replace
from typing import Callable, Optional

from cashbook.domain.entities import BusinessConfig
from cashbook.domain.errors import ValidationError
from cashbook.domain.store import EntityStore

logger = logging.getLogger(__name__)

DEFAULT_CURRENCY = "$"


class BusinessConfigService:
    """Service for reading and updating the business configuration."""

    def __init__(self, store: EntityStore, on_change: Optional[Callable[[], None]] = None):
        """
        Args:
            store: Entity store instance
            on_change: Called after every persisted config change
        """
        self.store = store
        self.on_change = on_change

    def get_config(self) -> BusinessConfig:
        return self.store.config

    def update(
        self,
        business_name: Optional[str] = None,
        currency: Optional[str] = None,
        address: Optional[str] = None,
        phone: Optional[str] = None,
        email: Optional[str] = None,
    ) -> BusinessConfig:
        """Update the provided fields and persist.

        A blank business name or currency falls back to its default.
        """
        config = self.store.config
        changes = {}
        if business_name is not None:
            changes["business_name"] = business_name.strip() or BusinessConfig().business_name
        if currency is not None:
            changes["currency"] = currency.strip() or DEFAULT_CURRENCY
        if address is not None:
            changes["address"] = address.strip()
        if phone is not None:
            changes["phone"] = phone.strip()
        if email is not None:
            changes["email"] = email.strip()

        config = replace(config, **changes)
        self._persist(config)
        return config

    def set_logo(self, image: bytes, width: int, height: int) -> BusinessConfig:
        """Store a logo image and cache its aspect ratio.

        Args:
            image: Raw image bytes
            width: Image width in pixels
            height: Image height in pixels

        Raises:
            ValidationError: If the image is empty
        """
        if not image:
            raise ValidationError("Logo image is empty", field="logo")
        ratio = width / height if width > 0 and height > 0 else 1.0
        config = replace(
            self.store.config,
            logo_data=base64.b64encode(image).decode("ascii"),
            logo_ratio=ratio,
        )
        self._persist(config)
        logger.info("Stored logo (%d bytes, ratio %.3f)", len(image), ratio)
        return config

    def clear_logo(self) -> BusinessConfig:
        config = replace(self.store.config, logo_data="", logo_ratio=1.0)
        self._persist(config)
        return config

    def logo_bytes(self) -> Optional[bytes]:
        """Return the decoded logo, or None when no logo is set."""
        if not self.store.config.logo_data:
            return None
        return base64.b64decode(self.store.config.logo_data)

    def _persist(self, config: BusinessConfig) -> None:
        self.store.set_config(config)
        self.store.save_config()
        if self.on_change is not None:
            self.on_change()
