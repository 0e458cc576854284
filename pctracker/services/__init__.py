from pctracker.services.collection_board import CollectionBoard
from pctracker.services.identity import (
    IdentityClient,
    IdentityError,
    OAuthRedirect,
    Session,
    User,
)
from pctracker.services.session_gate import SessionGate

__all__ = [
    "CollectionBoard",
    "IdentityClient",
    "IdentityError",
    "OAuthRedirect",
    "Session",
    "SessionGate",
    "User",
]
