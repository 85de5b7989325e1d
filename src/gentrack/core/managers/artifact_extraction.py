"""Artifact extraction strategies for provider status documents.

The provider has shipped several result layouts over time. Each strategy
recognizes one of them:
1. ImageObjectsStrategy: `images` = [{"url": ...}, ...]
2. ImageUrlsStrategy:    `image_urls` = ["...", ...]
3. OutputsStrategy:      `outputs` = ["...", ...]
4. ResultStrategy:       `result` = ["...", ...]

The first strategy whose field is present and yields at least one location
wins. When none does, the extraction is empty.
"""

from typing import Any, Dict, List, Optional, Protocol


class ArtifactExtractionStrategy(Protocol):
    field: str

    def extract(self, payload: Dict[str, Any]) -> List[str]:
        ...


def _string_locations(items: Any) -> List[str]:
    if not isinstance(items, list):
        return []
    return [item for item in items if isinstance(item, str) and item]


class ImageObjectsStrategy:
    """`images` holds objects exposing a `url`; bare strings are tolerated."""

    field = "images"

    def extract(self, payload: Dict[str, Any]) -> List[str]:
        items = payload.get(self.field)
        if not isinstance(items, list):
            return []
        locations: List[str] = []
        for item in items:
            if isinstance(item, dict):
                url = item.get("url")
                if isinstance(url, str) and url:
                    locations.append(url)
            elif isinstance(item, str) and item:
                locations.append(item)
        return locations


class ImageUrlsStrategy:
    field = "image_urls"

    def extract(self, payload: Dict[str, Any]) -> List[str]:
        return _string_locations(payload.get(self.field))


class OutputsStrategy:
    field = "outputs"

    def extract(self, payload: Dict[str, Any]) -> List[str]:
        return _string_locations(payload.get(self.field))


class ResultStrategy:
    field = "result"

    def extract(self, payload: Dict[str, Any]) -> List[str]:
        return _string_locations(payload.get(self.field))


DEFAULT_STRATEGIES: List[ArtifactExtractionStrategy] = [
    ImageObjectsStrategy(),
    ImageUrlsStrategy(),
    OutputsStrategy(),
    ResultStrategy(),
]


def extract_artifacts(
    payload: Any,
    strategies: Optional[List[ArtifactExtractionStrategy]] = None,
) -> List[str]:
    """Return artifact locations from the first shape that yields any."""
    if not isinstance(payload, dict):
        return []
    for strategy in strategies or DEFAULT_STRATEGIES:
        locations = strategy.extract(payload)
        if locations:
            return locations
    return []
