"""Directory identity models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ObjectType(str, Enum):
    """Directory object kinds an identity name can resolve to."""

    USER = "User"
    GROUP = "Group"
    SERVICE_PRINCIPAL = "ServicePrincipal"

    @classmethod
    def from_odata_type(cls, odata_type: str | None) -> ObjectType | None:
        return _ODATA_TYPES.get(odata_type or "")


_ODATA_TYPES = {
    "#microsoft.graph.user": ObjectType.USER,
    "#microsoft.graph.group": ObjectType.GROUP,
    "#microsoft.graph.servicePrincipal": ObjectType.SERVICE_PRINCIPAL,
}


@dataclass(frozen=True)
class IdentityReference:
    """A resolved directory object."""

    object_id: str
    object_type: ObjectType
    display_name: str

    def to_dict(self) -> dict[str, str]:
        return {
            "object_id": self.object_id,
            "object_type": self.object_type.value,
            "display_name": self.display_name,
        }
