"""Directory identity resolution."""

from datalake_acl.identity.models import IdentityReference, ObjectType
from datalake_acl.identity.resolver import IdentityResolver

__all__ = ["IdentityReference", "IdentityResolver", "ObjectType"]
