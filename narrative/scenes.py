"""Scene counter value object."""

from __future__ import annotations

import math
from dataclasses import dataclass
from numbers import Integral, Real
from typing import Any

SCENES_PER_ROUTE = 100


class InvalidSceneNumber(ValueError):
    """Raised when a scene number is not a non-negative finite integer."""


def _validate(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, Real):
        raise InvalidSceneNumber(f"Scene number must be numeric, got {value!r}")
    if not isinstance(value, Integral):
        if math.isnan(value):
            raise InvalidSceneNumber("Scene number must not be NaN")
        if math.isinf(value):
            raise InvalidSceneNumber("Scene number must be finite")
        if value != int(value):
            raise InvalidSceneNumber(f"Scene number must be an integer, got {value}")
    value = int(value)
    if value < 0:
        raise InvalidSceneNumber(f"Scene number must be >= 0, got {value}")
    return value


@dataclass(frozen=True)
class SceneCounter:
    """Position inside a route. Immutable; ``next()`` returns a new counter."""

    value: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "value", _validate(self.value))

    @classmethod
    def zero(cls) -> SceneCounter:
        return cls(0)

    @classmethod
    def from_value(cls, value: Any) -> SceneCounter:
        return cls(value)

    def next(self) -> SceneCounter:
        # Python ints do not overflow, so this never fails for a valid counter.
        return SceneCounter(self.value + 1)

    def is_last_scene(self, total: int) -> bool:
        return self.value == total - 1

    def equals(self, other: SceneCounter) -> bool:
        return self.value == other.value

    def __int__(self) -> int:
        return self.value

    def __str__(self) -> str:
        return str(self.value)
