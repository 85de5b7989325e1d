"""Submission payload accepted by POST /api/generate."""

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class GenerationRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    prompt: str = Field(min_length=1)
    aspect: str = Field(min_length=1)
    resolution: Literal["1k", "2k", "4k"] = "2k"
    format: str = "png"
    num_images: int = Field(default=1, ge=1, alias="numImages")
    model_id: Optional[str] = Field(default=None, alias="modelId")
    image_urls: List[str] = Field(default_factory=list, alias="imageUrls")
    contact_id: Optional[str] = Field(default=None, alias="contactId")
    user_id: Optional[str] = Field(default=None, alias="userId")

    @field_validator("resolution", mode="before")
    @classmethod
    def lower_resolution(cls, value):
        if isinstance(value, str):
            return value.lower()
        return value

    @field_validator("image_urls", mode="before")
    @classmethod
    def coerce_image_urls(cls, value):
        if value is None:
            return []
        if not isinstance(value, list):
            return []
        return [str(v) for v in value]

    def hosted_image_urls(self) -> List[str]:
        """Only hosted http(s) URLs; the provider rejects inline data URLs."""
        return [
            url for url in self.image_urls
            if url.startswith("http://") or url.startswith("https://")
        ]

    def skipped_image_count(self) -> int:
        return len(self.image_urls) - len(self.hosted_image_urls())

    def as_provider_payload(self) -> dict:
        payload = {
            "prompt": self.prompt,
            "num_images": self.num_images,
            "resolution": self.resolution,
            "aspect_ratio": self.aspect,
            "output_format": self.format,
        }
        hosted = self.hosted_image_urls()
        if hosted:
            payload["image_urls"] = hosted
        return payload
