"""Core domain models for the slideshow: image descriptors, criteria, and modes."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

DEFAULT_COLOR = "#000"


@dataclass(frozen=True)
class Attribution:
    """Photographer credit attached to a remote image."""

    photographer_name: str
    photographer_url: str | None = None


@dataclass(frozen=True)
class ImageDescriptor:
    """A single image entry of the metadata set.

    Immutable once fetched; its position in the set is the addressing key used
    by the prefetch cache and the navigation state.
    """

    id: str
    url: str
    color: str = DEFAULT_COLOR
    attribution: Attribution | None = None
    captured_at: datetime | None = None
    location_name: str | None = None


class Orientation(str, Enum):
    """Display orientation requested from the provider."""

    LANDSCAPE = "landscape"
    PORTRAIT = "portrait"

    @classmethod
    def from_size(cls, width: int, height: int) -> "Orientation":
        """Landscape when the surface is at least as wide as it is tall."""
        return cls.LANDSCAPE if width >= height else cls.PORTRAIT


@dataclass(frozen=True)
class SelectionCriteria:
    """The (orientation, query) pair that selects remote results."""

    orientation: Orientation = Orientation.LANDSCAPE
    query: str = "nature"


@dataclass(frozen=True)
class RemoteConfig:
    """Server-side configuration consumed once at startup."""

    provider: str = "local"
    image_interval: float = 30.0  # seconds
    image_query: str = "nature"


# Navigation modes. Only the offline variants carry a snapshot.


@dataclass(frozen=True)
class Online:
    """Normal browsing over the whole metadata set."""

    is_offline = False


@dataclass(frozen=True)
class _Offline:
    sequence: tuple[int, ...] = field(default_factory=tuple)
    position: int = 0
    # where the viewer was, and the epoch, when the snapshot was taken
    entry_index: int = 0
    entry_epoch: int = 0

    is_offline = True


@dataclass(frozen=True)
class OfflineAuto(_Offline):
    """Degraded browsing entered because connectivity was lost."""


@dataclass(frozen=True)
class OfflineManual(_Offline):
    """Degraded browsing entered by the user; never left automatically."""


Mode = Online | OfflineAuto | OfflineManual
