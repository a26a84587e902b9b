"""Lightweight view model wrapper around `ImageDescriptor` for attribution text."""

from __future__ import annotations

from dataclasses import dataclass

from core.models import ImageDescriptor
from infrastructure.utils import format_month_year

PROVIDER_LABELS = {
    "unsplash": "Unsplash",
    "pexels": "Pexels",
}


@dataclass
class PhotoVM:
    """Expose attribution strings for a descriptor shown by `provider`."""

    descriptor: ImageDescriptor
    provider: str = "local"

    @property
    def has_attribution(self) -> bool:
        """True when the provider credited a photographer."""
        attribution = self.descriptor.attribution
        return bool(attribution and attribution.photographer_name)

    @property
    def photographer(self) -> str:
        """Photographer name, suffixed with the provider for remote sources."""
        attribution = self.descriptor.attribution
        if attribution is None or not attribution.photographer_name:
            return ""
        text = attribution.photographer_name
        label = PROVIDER_LABELS.get(self.provider)
        if label:
            text = f"{text} on {label}"
        return text

    @property
    def photographer_url(self) -> str | None:
        attribution = self.descriptor.attribution
        return attribution.photographer_url if attribution else None

    @property
    def details(self) -> str:
        """Location and capture month joined by a middle dot."""
        parts: list[str] = []
        if self.descriptor.location_name:
            parts.append(self.descriptor.location_name)
        captured = format_month_year(self.descriptor.captured_at)
        if captured:
            parts.append(captured)
        return " · ".join(parts)
