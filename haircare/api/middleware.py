"""HTTP middleware applying the session gate to page navigations."""
import logging
from typing import Optional

from fastapi import Request
from fastapi.responses import RedirectResponse
from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware

from haircare.core.deps import extract_token
from haircare.core.session_gate import GateDecision, GateRoutes, RedirectTo, decide
from haircare.database import open_session
from haircare.errors import PersistenceError
from haircare.services import auth_service, profile_service

logger = logging.getLogger(__name__)

NAVIGATION_METHODS = ("GET", "HEAD")


def is_navigation(request: Request) -> bool:
    """A browser page load: GET or HEAD that accepts HTML."""
    return request.method in NAVIGATION_METHODS and "text/html" in request.headers.get("accept", "")


class SessionGateMiddleware(BaseHTTPMiddleware):
    """
    Run the session gate on page navigations to admin, protected and
    sign-in paths.

    API calls (anything that is not an HTML GET) fall through to the auth
    dependencies, which answer 401. Redirect decisions are answered with
    307. On proceed, the resolved user id is left on request.state for the
    auth dependencies.
    """

    def __init__(self, app, routes: Optional[GateRoutes] = None):
        super().__init__(app)
        self.routes = routes

    async def dispatch(self, request: Request, call_next):
        routes = self.routes or GateRoutes.from_settings()
        path = request.url.path
        if not (is_navigation(request) and routes.matches(path)):
            return await call_next(request)

        decision, user_id = await run_in_threadpool(self._evaluate, request, path, routes)
        logger.debug(f"Session gate: path={path}, session={user_id is not None}, decision={decision}")

        if isinstance(decision, RedirectTo):
            return RedirectResponse(url=decision.target, status_code=307)

        if user_id is not None:
            request.state.user_id = user_id
        return await call_next(request)

    def _evaluate(self, request: Request, path: str, routes: GateRoutes) -> tuple[GateDecision, Optional[str]]:
        with open_session(request.app.state.engine) as session:
            try:
                user_id = auth_service.resolve_session(session, extract_token(request))
            except PersistenceError as e:
                logger.error(f"Session lookup failed in gate for {path}: {e}")
                user_id = None

            decision = decide(
                path,
                session_present=user_id is not None,
                role_lookup=lambda: profile_service.lookup_role(session, user_id),
                routes=routes,
            )
        return decision, user_id
