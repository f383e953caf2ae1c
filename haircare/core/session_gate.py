"""Per-request route access decision.

decide() is a pure function of the path, whether a session is present and
an injected role lookup. It holds no state and never touches the
conversation store.
"""
import logging
from dataclasses import dataclass
from typing import Callable, Optional, Union

from haircare.config import settings
from haircare.errors import GateLookupError
from haircare.models.profile import UserRole

logger = logging.getLogger(__name__)

RoleLookup = Callable[[], Optional[str]]


@dataclass(frozen=True)
class Proceed:
    pass


@dataclass(frozen=True)
class RedirectTo:
    target: str


GateDecision = Union[Proceed, RedirectTo]


@dataclass(frozen=True)
class GateRoutes:
    """Route namespaces the gate distinguishes."""
    admin_prefix: str = "/admin"
    protected_prefixes: tuple[str, ...] = ("/chat", "/profile")
    sign_in_path: str = "/auth"
    landing_path: str = "/chat"

    @classmethod
    def from_settings(cls) -> "GateRoutes":
        return cls(
            admin_prefix=settings.ADMIN_PREFIX,
            protected_prefixes=tuple(settings.PROTECTED_PREFIXES),
            sign_in_path=settings.SIGN_IN_PATH,
            landing_path=settings.LANDING_PATH,
        )

    @staticmethod
    def in_namespace(path: str, prefix: str) -> bool:
        """Whole-segment match: /chat covers /chat and /chat/x, not /chatroom."""
        return path == prefix or path.startswith(prefix.rstrip("/") + "/")

    def is_admin(self, path: str) -> bool:
        return self.in_namespace(path, self.admin_prefix)

    def is_protected(self, path: str) -> bool:
        return any(self.in_namespace(path, prefix) for prefix in self.protected_prefixes)

    def is_sign_in(self, path: str) -> bool:
        return path == self.sign_in_path

    def matches(self, path: str) -> bool:
        """Paths the gate has an opinion on."""
        return self.is_admin(path) or self.is_protected(path) or self.is_sign_in(path)


def decide(
    path: str,
    session_present: bool,
    role_lookup: RoleLookup,
    routes: Optional[GateRoutes] = None,
) -> GateDecision:
    """
    Decide whether a request may proceed.

    Precedence:
    1. Admin namespace: no session -> sign-in; non-admin -> landing page
    2. Protected namespaces: no session -> sign-in
    3. Sign-in page with a session -> landing page
    4. Anything else proceeds

    A failing role lookup is logged and the caller is treated as an
    authenticated non-admin: the request is never crashed or blocked.
    """
    routes = routes or GateRoutes.from_settings()

    if routes.is_admin(path):
        if not session_present:
            return RedirectTo(routes.sign_in_path)

        try:
            role = role_lookup()
        except Exception as e:
            failure = e if isinstance(e, GateLookupError) else GateLookupError(str(e))
            logger.warning(f"Role lookup failed for {path}, continuing as non-admin: {failure}")
            role = None

        if role != UserRole.ADMIN.value:
            return RedirectTo(routes.landing_path)
        return Proceed()

    if routes.is_protected(path) and not session_present:
        return RedirectTo(routes.sign_in_path)

    if routes.is_sign_in(path) and session_present:
        return RedirectTo(routes.landing_path)

    return Proceed()
