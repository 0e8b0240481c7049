"""Request gate: the decision chain run before every API request.

Stages run in a fixed order and each returns one of:

- CONTINUE: hand off to the next stage;
- ALLOW: stop and let the request through to its handler;
- REJECT: stop and answer with the attached error.

Order: classify -> require_credential -> check_syntax -> check_cache ->
lookup_credential -> limit_by_api_key. Requests without a key to a free
endpoint are decided by the IP policy inside ``require_credential``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable

from animequotes.core.auth import CredentialValidator, hash_api_key
from animequotes.core.endpoints import EndpointAccess, classify
from animequotes.core.errors import (
    AppError,
    MalformedCredentialError,
    MissingCredentialError,
    RouteNotFoundError,
    UnknownCredentialError,
)
from animequotes.core.rate_limit import RateLimitPolicies, limit_by_api_key, limit_by_ip

logger = logging.getLogger(__name__)


class Verdict(str, Enum):
    CONTINUE = "continue"
    ALLOW = "allow"
    REJECT = "reject"


@dataclass(frozen=True)
class StageOutcome:
    verdict: Verdict
    error: AppError | None = None

    @classmethod
    def proceed(cls) -> "StageOutcome":
        return cls(Verdict.CONTINUE)

    @classmethod
    def allow(cls) -> "StageOutcome":
        return cls(Verdict.ALLOW)

    @classmethod
    def reject(cls, error: AppError) -> "StageOutcome":
        return cls(Verdict.REJECT, error)

    @classmethod
    def from_check(cls, error: AppError | None) -> "StageOutcome":
        """Terminal outcome of a rate limit check."""
        return cls.allow() if error is None else cls.reject(error)


@dataclass
class GateContext:
    """Per-request state threaded through the stages.

    Attributes:
        path: Request path relative to the API prefix.
        api_key: Value of the ``x-api-key`` header, if any.
        client_ip: Resolved client address.
        access: Set by the classify stage.
        cached: Set by the cache stage when the key was found in the validity cache.
        stage: Name of the stage currently running (for logs).
    """

    path: str
    api_key: str | None
    client_ip: str
    access: EndpointAccess | None = None
    cached: bool = False
    stage: str | None = None


Stage = Callable[[GateContext], Awaitable[StageOutcome]]


class RequestGate:
    """Compose classifier, credential validator and rate limit policies."""

    def __init__(self, *, validator: CredentialValidator, policies: RateLimitPolicies) -> None:
        self.validator = validator
        self.policies = policies
        self.stages: tuple[Stage, ...] = (
            self.classify,
            self.require_credential,
            self.check_syntax,
            self.check_cache,
            self.lookup_credential,
            self.limit_by_api_key,
        )

    async def evaluate(self, ctx: GateContext) -> StageOutcome:
        """Run the stages until one of them stops the chain."""

        for stage in self.stages:
            ctx.stage = getattr(stage, "__name__", None)
            outcome = await stage(ctx)
            if outcome.verdict is not Verdict.CONTINUE:
                return outcome
        return StageOutcome.allow()

    async def classify(self, ctx: GateContext) -> StageOutcome:
        ctx.access = classify(ctx.path)
        if ctx.access is EndpointAccess.INVALID:
            return StageOutcome.reject(RouteNotFoundError())
        return StageOutcome.proceed()

    async def require_credential(self, ctx: GateContext) -> StageOutcome:
        if ctx.api_key:
            return StageOutcome.proceed()
        if ctx.access is EndpointAccess.PROTECTED:
            return StageOutcome.reject(MissingCredentialError())
        return StageOutcome.from_check(await limit_by_ip(self.policies.ip, ctx.client_ip))

    async def check_syntax(self, ctx: GateContext) -> StageOutcome:
        if not self.validator.is_well_formed(ctx.api_key or ""):
            return StageOutcome.reject(MalformedCredentialError())
        return StageOutcome.proceed()

    async def check_cache(self, ctx: GateContext) -> StageOutcome:
        api_key = ctx.api_key or ""
        ctx.cached = await self.validator.is_cached(api_key)
        if ctx.cached:
            logger.debug("auth.cache_hit", extra={"api_key_hash": hash_api_key(api_key)})
        return StageOutcome.proceed()

    async def lookup_credential(self, ctx: GateContext) -> StageOutcome:
        if ctx.cached:
            return StageOutcome.proceed()
        if not await self.validator.lookup(ctx.api_key or ""):
            return StageOutcome.reject(UnknownCredentialError())
        return StageOutcome.proceed()

    async def limit_by_api_key(self, ctx: GateContext) -> StageOutcome:
        check = limit_by_api_key(self.policies.api_key, ctx.api_key or "")
        return StageOutcome.from_check(await check())
