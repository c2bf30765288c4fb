"""
Route classification for request admission.

``classify_path`` is a pure function of the request path and the reserved
name sets; the middleware in ``yuki.middleware`` applies the policy.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from yuki.core.reserved import ReservedNames, get_reserved_names


class RouteKind(str, Enum):
    RESERVED = "reserved"
    PUBLIC_PROFILE = "public_profile"
    PROTECTED = "protected"


class RouteCategory(str, Enum):
    SYSTEM = "system"
    AUTH = "auth"
    DOCS = "docs"
    APP = "app"


_PUBLIC_CATEGORIES = {RouteCategory.SYSTEM, RouteCategory.AUTH, RouteCategory.DOCS}


@dataclass(frozen=True)
class RouteDecision:
    kind: RouteKind
    category: Optional[RouteCategory] = None

    @property
    def requires_identity(self) -> bool:
        if self.kind is RouteKind.PUBLIC_PROFILE:
            return False
        if self.kind is RouteKind.RESERVED:
            return self.category not in _PUBLIC_CATEGORIES
        return True


def classify_path(path: str, reserved: ReservedNames | None = None) -> RouteDecision:
    reserved = reserved or get_reserved_names()
    segments = [s for s in path.split("/") if s]
    if not segments:
        return RouteDecision(RouteKind.PROTECTED)

    first = segments[0].lower()

    # Prefix match on the first segment
    if first in reserved.system:
        return RouteDecision(RouteKind.RESERVED, RouteCategory.SYSTEM)
    if first in reserved.auth:
        return RouteDecision(RouteKind.RESERVED, RouteCategory.AUTH)
    if first in reserved.docs:
        return RouteDecision(RouteKind.RESERVED, RouteCategory.DOCS)
    if first in reserved.app or first in reserved.words:
        return RouteDecision(RouteKind.RESERVED, RouteCategory.APP)

    if len(segments) == 1 and "." not in first:
        return RouteDecision(RouteKind.PUBLIC_PROFILE)

    return RouteDecision(RouteKind.PROTECTED)
