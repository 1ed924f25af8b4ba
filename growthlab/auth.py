"""Bearer-token authentication provider.

Tokens and the user ids they map to come from settings (``API_TOKENS``, a
JSON object). Any other provider only needs ``get_current_user``.
"""

from __future__ import annotations

import hmac
from typing import TYPE_CHECKING

from growthlab.models.user import User

if TYPE_CHECKING:
    from starlette.requests import Request


class StaticTokenAuth:
    def __init__(self, tokens: dict[str, str]) -> None:
        self._tokens = dict(tokens)

    def get_current_user(self, request: Request) -> User | None:
        header = request.headers.get("Authorization", "")
        scheme, _, token = header.partition(" ")
        if scheme.lower() != "bearer" or not token:
            return None
        for known, user_id in self._tokens.items():
            if hmac.compare_digest(known.encode(), token.strip().encode()):
                return User(id=user_id)
        return None
