"""Player settings value object."""

from __future__ import annotations

import math
from dataclasses import dataclass, replace


class InvalidSettings(ValueError):
    """Raised when a settings value is out of range."""


@dataclass(frozen=True)
class GameSettings:
    volume: float = 0.8
    text_speed: float = 1.0
    auto_save: bool = True

    def __post_init__(self) -> None:
        for name in ("volume", "text_speed"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise InvalidSettings(f"{name} must be a number, got {value!r}")
            if math.isnan(value) or math.isinf(value):
                raise InvalidSettings(f"{name} must be a finite number")
            object.__setattr__(self, name, float(value))
        if not 0.0 <= self.volume <= 1.0:
            raise InvalidSettings(f"volume must be between 0.0 and 1.0, got {self.volume}")
        if self.text_speed <= 0:
            raise InvalidSettings(f"text_speed must be greater than 0, got {self.text_speed}")
        object.__setattr__(self, "auto_save", bool(self.auto_save))

    @classmethod
    def default(cls) -> GameSettings:
        return cls()

    @classmethod
    def from_config(cls, cfg: dict) -> GameSettings:
        """Build defaults from the ``settings.defaults`` config section."""
        defaults = cfg.get("settings", {}).get("defaults", {}) or {}
        base = cls.default()
        return cls(
            volume=defaults.get("volume", base.volume),
            text_speed=defaults.get("text_speed", base.text_speed),
            auto_save=defaults.get("auto_save", base.auto_save),
        )

    def with_volume(self, volume: float) -> GameSettings:
        return replace(self, volume=volume)

    def with_text_speed(self, text_speed: float) -> GameSettings:
        return replace(self, text_speed=text_speed)

    def with_auto_save(self, auto_save: bool) -> GameSettings:
        return replace(self, auto_save=auto_save)

    def is_auto_save_enabled(self) -> bool:
        return self.auto_save
