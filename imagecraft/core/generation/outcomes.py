"""
Provider outcomes collected by the fan-out.

Dependencies: imagecraft.boundary.providers.base
System role: Typed per-provider results consumed by the reconciler
"""

from dataclasses import dataclass
from typing import Union

from imagecraft.boundary.providers.base import NO_IMAGES_GENERATED


@dataclass(frozen=True)
class Success:
    """Provider produced images; image_refs are display references in provider order."""

    image_refs: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "image_refs", tuple(self.image_refs))

    @property
    def has_images(self) -> bool:
        return len(self.image_refs) > 0


@dataclass(frozen=True)
class Failure:
    """Provider produced nothing usable; message is shown to the user."""

    message: str


ProviderOutcome = Union[Success, Failure]
