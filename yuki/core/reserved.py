"""
Reserved route and handle names.

One immutable value shared by the handle validator and the route classifier.
It is built once per process from the built-in sets below plus any extra
handles configured through ``EXTRA_RESERVED_HANDLES``.
"""
from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Iterable

from yuki.core.config import settings

SYSTEM_ROUTES = frozenset({
    "api", "_next", "static", "public",
    "favicon.ico", "robots.txt", "sitemap.xml", "site.webmanifest",
    "docs", "redoc", "openapi.json",
})

AUTH_ROUTES = frozenset({
    "login", "logout", "sign-in", "sign-up", "signin", "signup",
})

DOC_ROUTES = frozenset({
    "documents", "legal", "help", "about", "privacy", "terms", "tos",
})

APP_ROUTES = frozenset({
    "activity", "settings", "setup", "configure", "deposit", "withdraw",
    "security", "funds", "onboarding", "contacts", "send", "portfolio",
    "allocations", "vaults", "account",
})

RESERVED_WORDS = frozenset({
    "admin", "root", "support", "yuki", "system", "wallet", "profile",
    "user", "users", "home", "dashboard", "explore", "search",
    "notifications", "messages", "trending",
})


@dataclass(frozen=True)
class ReservedNames:
    system: frozenset[str]
    auth: frozenset[str]
    docs: frozenset[str]
    app: frozenset[str]
    words: frozenset[str]

    @classmethod
    def build(cls, extra_words: Iterable[str] = ()) -> "ReservedNames":
        extra = frozenset(w.strip().lower().lstrip("@") for w in extra_words if w.strip())
        return cls(
            system=SYSTEM_ROUTES,
            auth=AUTH_ROUTES,
            docs=DOC_ROUTES,
            app=APP_ROUTES,
            words=RESERVED_WORDS | extra,
        )

    @property
    def all(self) -> frozenset[str]:
        return self.system | self.auth | self.docs | self.app | self.words

    def is_reserved(self, name: str) -> bool:
        return name.lower().lstrip("@") in self.all


@lru_cache(maxsize=1)
def get_reserved_names() -> ReservedNames:
    return ReservedNames.build(settings.extra_reserved_handles)
