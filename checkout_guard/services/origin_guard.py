"""Origin Guard — applies the origin allowlist to incoming requests.

Invariants:
    - Rejection raises OriginRejectedError with a fixed message; the origin is never echoed
    - Rejections are logged with the rule that fired, not the offending value
"""

import logging
from typing import Iterable, Mapping

from checkout_guard.core.errors import OriginRejectedError
from checkout_guard.core.origin import check_origin

logger = logging.getLogger(__name__)


class OriginGuard:

    def __init__(
        self,
        allowed_origins: Iterable[str],
        server_secrets: Iterable[str] = (),
        is_production: bool = True,
    ):
        self._allowed = frozenset(allowed_origins)
        self._server_secrets = tuple(server_secrets)
        self._is_production = is_production

    def validate(self, method: str, headers: Mapping[str, str]) -> None:
        decision = check_origin(
            method,
            headers,
            self._allowed,
            server_secrets=self._server_secrets,
            is_production=self._is_production,
        )
        if not decision.allowed:
            logger.warning(
                "Request blocked by origin guard", extra={"rule": decision.rule},
            )
            raise OriginRejectedError()
