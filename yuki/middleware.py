"""
Request admission: decides per path whether a caller must be identified.
"""
import logging
from urllib.parse import urlencode

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import RedirectResponse

from yuki.core.config import settings
from yuki.core.identity import IdentityVerifier, default_identity_verifier
from yuki.core.reserved import ReservedNames
from yuki.services.routes import classify_path

logger = logging.getLogger(__name__)


class RouteAdmissionMiddleware(BaseHTTPMiddleware):
    """
    Redirects unidentified callers on protected pages to the login path,
    carrying the original path in ``redirect_url``. Identified callers on the
    login path go to "/".
    """

    def __init__(
        self,
        app,
        verifier: IdentityVerifier | None = None,
        reserved: ReservedNames | None = None,
        login_path: str | None = None,
    ):
        super().__init__(app)
        self.verifier = verifier or default_identity_verifier()
        self.reserved = reserved
        self.login_path = login_path or settings.login_path

    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        identity = self.verifier.identify(request)

        if path == self.login_path or path.startswith(self.login_path + "/"):
            if identity is not None:
                return RedirectResponse("/", status_code=307)
            return await call_next(request)

        decision = classify_path(path, self.reserved)
        if decision.requires_identity and identity is None:
            logger.debug("Redirecting unidentified request for %s to login", path)
            query = urlencode({"redirect_url": path})
            return RedirectResponse(
                f"{self.login_path}?{query}",
                status_code=307,
            )

        return await call_next(request)
