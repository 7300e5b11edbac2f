"""Fake auth service — development stub for AuthService.

Accepts any non-empty token and treats the token itself as the player
id, so two test clients with different tokens are two different players.
Empty tokens return None (simulates a missing/invalid Authorization
header).

TEAM: Replace this with your real auth provider. Subclass AuthService
from versepuzzle.hooks.interfaces and implement validate_token.

Usage:
    from versepuzzle.hooks.auth import FakeAuthService

    auth = FakeAuthService()
    player = await auth.validate_token("player-1")  # Player(id="player-1")
"""

from versepuzzle.hooks.interfaces import AuthService
from versepuzzle.schemas import Player


class FakeAuthService(AuthService):
    """STUB — returns a player for any non-empty token.

    Does not perform real authentication. The optional ``display_name``
    is used for every player; otherwise the name is derived from the id.
    """

    def __init__(self, display_name: str | None = None) -> None:
        self._display_name = display_name

    async def validate_token(self, token: str) -> Player | None:
        """Returns a player whose id is the stripped token, or None if empty."""
        player_id = token.strip()
        if not player_id:
            return None
        return Player(id=player_id, name=self._display_name or f"Player {player_id}")
