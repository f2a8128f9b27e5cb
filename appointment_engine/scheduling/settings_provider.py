"""Shop settings provider: one cached, explicitly invalidated policy object."""

import logging
from typing import Any, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from appointment_engine.config import AppConfig, settings as app_settings
from appointment_engine.errors import ValidationError
from appointment_engine.repository import Repository
from appointment_engine.schemas.settings_schema import ShopSettings, ShopSettingsUpdate

logger = logging.getLogger(__name__)


class SettingsProvider:
    """
    Serves the tenant's ShopSettings.

    The first read seeds storage from configuration when the tenant has
    none yet. Subsequent reads are served from cache until ``update`` or
    ``invalidate`` is called.
    """

    def __init__(self, repository: Repository, config: AppConfig = app_settings) -> None:
        self._repository = repository
        self._config = config
        self._cached: Optional[ShopSettings] = None

    def get(self) -> ShopSettings:
        if self._cached is None:
            stored = self._repository.get_settings()
            if stored is None:
                stored = ShopSettings.from_config(self._config)
                self._repository.save_settings(stored)
                logger.info("Seeded shop settings from configuration")
            self._cached = stored
        return self._cached.model_copy()

    def update(self, changes: Union[ShopSettingsUpdate, dict[str, Any]]) -> ShopSettings:
        """Apply a partial update, re-validating the merged result.

        Raises:
            ValidationError: If a field is unknown or the merged settings are invalid.
        """
        try:
            if isinstance(changes, dict):
                changes = ShopSettingsUpdate.model_validate(changes)
            merged = {**self.get().model_dump(), **changes.model_dump(exclude_none=True)}
            updated = ShopSettings.model_validate(merged)
        except PydanticValidationError as exc:
            raise ValidationError(f"Invalid shop settings: {exc}") from exc

        self._repository.save_settings(updated)
        self._cached = updated
        logger.info(
            "Shop settings updated: %s",
            ", ".join(sorted(changes.model_dump(exclude_none=True))) or "no changes",
        )
        return updated.model_copy()

    def invalidate(self) -> None:
        """Drop the cached copy so the next read goes back to storage."""
        self._cached = None
