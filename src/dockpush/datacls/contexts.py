"""
Dockpush derived records

ImageTag identifies a buildable image. BuildConfiguration and ChangeSet are
derived per invocation from a Service and never cached.
"""

from typing import List
from pydantic import BaseModel, ConfigDict, Field


class ImageTag(BaseModel):
    model_config = ConfigDict(frozen=True)

    image: str
    tag: str

    @property
    def reference(self) -> str:
        return f"{self.image}:{self.tag}"

    def __str__(self) -> str:
        return self.reference


class BuildConfiguration(BaseModel):
    """
    Snapshot of everything needed to submit one image build.

    `file_paths` are relative to `context` and already filtered through the
    context's ignore rules; `dockerfile` is the generated live variant.
    """
    model_config = ConfigDict(frozen=True)

    image_tag: ImageTag
    dockerfile: str
    context: str
    relative_context: str
    file_paths: List[str] = Field(default_factory=list)
    build_args: List[str] = Field(default_factory=list)


class ChangeSet(BaseModel):
    """Changed paths within one service context, split by whether they still exist."""
    model_config = ConfigDict(frozen=True)

    added_or_updated: List[str] = Field(default_factory=list)
    deleted: List[str] = Field(default_factory=list)

    @property
    def empty(self) -> bool:
        return not self.added_or_updated and not self.deleted
