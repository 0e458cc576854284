"""
Session gate.

Controls the sign-in screen: redirects signed-in users to the board and
otherwise offers a single "sign in" action delegated to the OAuth provider.
"""

import logging

from pctracker.config import BOARD_PATH, settings
from pctracker.services.identity import IdentityClient, IdentityError, OAuthRedirect

logger = logging.getLogger(__name__)


class SessionGate:
    """
    Sign-in screen controller.

    ``busy`` is True while a sign-in is in progress; further sign-in
    requests are ignored until it settles. Pass ``busy=True`` to restore a
    pending sign-in from an earlier request. A failed sign-in leaves the gate
    idle, with no separate error state.
    """

    def __init__(
        self,
        identity: IdentityClient,
        provider: str | None = None,
        board_path: str = BOARD_PATH,
        busy: bool = False,
    ) -> None:
        self.identity = identity
        self.provider = provider or settings.oauth_provider
        self.board_path = board_path
        self.busy = busy

    async def resolve(self, access_token: str | None) -> str | None:
        """
        Return the board path if a user is signed in, else None.

        Auth API failures count as "not signed in".
        """
        try:
            user = await self.identity.get_current_user(access_token)
        except IdentityError as e:
            logger.warning("Could not resolve current user: %s", e)
            return None

        if user is None:
            return None

        logger.debug("User %s already signed in, redirecting to board", user.id)
        return self.board_path

    async def sign_in(self, return_to: str) -> OAuthRedirect | None:
        """
        Start the delegated sign-in flow.

        Args:
            return_to: Post-login return target on the current origin

        Returns:
            The redirect to follow, or None if a sign-in is already in
            progress or the provider could not be reached.
        """
        if self.busy:
            logger.debug("Sign-in already in progress, ignoring")
            return None

        self.busy = True
        try:
            return await self.identity.sign_in_with_oauth(self.provider, redirect_to=return_to)
        except IdentityError as e:
            logger.warning("Sign-in with %s failed: %s", self.provider, e)
            return None
        finally:
            self.busy = False
