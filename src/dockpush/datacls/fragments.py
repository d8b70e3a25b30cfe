"""
Declaration fragments

A project is assembled from an ordered list of fragments. Each fragment has
exactly one of three shapes: a compose file, a Dockerfile bound to a running
container (push), or a Dockerfile bound to an image and tag (build).
"""

from typing import List, Union
from pydantic import BaseModel, ConfigDict

from .. import constants
from ..exceptions import FragmentParseError


class ComposeFragment(BaseModel):
    """A compose file; all compose fragments are interpreted together."""
    model_config = ConfigDict(frozen=True)

    compose_path: str


class DockerfileContainerFragment(BaseModel):
    """`containerId:dockerfile[:context]`"""
    model_config = ConfigDict(frozen=True)

    container_id: str
    dockerfile_path: str
    context: str = constants.DEFAULT_CONTEXT

    @classmethod
    def parse(cls, value: str) -> "DockerfileContainerFragment":
        fields = _split(value, constants.CONTAINER_MIN_FIELDS)
        return cls(
            container_id=fields[0],
            dockerfile_path=fields[1],
            context=_context(fields[2:]),
        )


class DockerfileImageTagFragment(BaseModel):
    """`image:tag:dockerfile[:context]`"""
    model_config = ConfigDict(frozen=True)

    image: str
    tag: str
    dockerfile_path: str
    context: str = constants.DEFAULT_CONTEXT

    @classmethod
    def parse(cls, value: str) -> "DockerfileImageTagFragment":
        fields = _split(value, constants.IMAGE_TAG_MIN_FIELDS)
        return cls(
            image=fields[0],
            tag=fields[1],
            dockerfile_path=fields[2],
            context=_context(fields[3:]),
        )


ProjectFragment = Union[ComposeFragment, DockerfileContainerFragment, DockerfileImageTagFragment]


def _split(value: str, min_fields: int) -> List[str]:
    fields = value.split(constants.FRAGMENT_SEPARATOR)
    if len(fields) < min_fields or not all(fields[:min_fields]):
        raise FragmentParseError(f"'{value}' is not a valid '--dockerfile' argument")
    return fields


def _context(rest: List[str]) -> str:
    # Contexts may themselves contain the separator
    return constants.FRAGMENT_SEPARATOR.join(rest) or constants.DEFAULT_CONTEXT
