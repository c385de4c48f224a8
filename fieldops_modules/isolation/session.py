"""
Module: fieldops_modules.isolation.session
Responsibility:
    ``UserSession`` is the explicit authentication context handed to every
    module service: the authenticated user id, the database session, and a
    ``ProfileCache`` of the caller's profile and company.

Architecture position:
    Modules layer.  Depends on kernel models, the clock and the isolation
    guard.  Replaces any process-wide "current user" state.

Invariants enforced:
    - The cache holds ``{profile, company, timestamp}`` under one fixed key
      and is trusted for at most ``ttl_seconds``.
    - The cache is cleared by ``invalidate()``, by ``sign_out()`` and when a
      fresh read shows the caller's company changed.
    - A fresh read replaces the cache entry, so the role seen by the
      rest of a write is the stored role.
    - After ``sign_out()`` every profile access raises ForbiddenError.
    - Only one submission per in-flight key at a time.

Failure modes:
    - ForbiddenError: signed out, unknown profile, or inactive profile.
    - ConflictError: a second submission under an in-flight key.
"""

from __future__ import annotations

from collections.abc import Iterator, MutableMapping
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from fieldops_config.schema import AuthConfig
from fieldops_kernel.domain.clock import Clock, SystemClock
from fieldops_kernel.exceptions import ConflictError, ForbiddenError
from fieldops_kernel.logging_config import get_logger
from fieldops_kernel.models.company import Company
from fieldops_kernel.models.profile import Profile
from fieldops_modules.isolation.guard import resolve_tenant
from fieldops_modules.isolation.models import CompanyInfo, ProfileInfo

logger = get_logger("modules.isolation.session")


@dataclass(frozen=True)
class CachedProfile:
    profile: ProfileInfo
    company: CompanyInfo | None
    timestamp: float


class ProfileCache:
    """
    Time-boxed cache entry for the caller's profile.

    The backing store is any mutable mapping (a dict in-process, or a
    client-side key/value store adapter); entries are plain dicts so they
    survive such a store.
    """

    def __init__(
        self,
        store: MutableMapping[str, Any],
        key: str,
        ttl_seconds: int,
        clock: Clock,
    ):
        self._store = store
        self._key = key
        self._ttl = ttl_seconds
        self._clock = clock

    def get(self) -> CachedProfile | None:
        entry = self._store.get(self._key)
        if entry is None:
            return None
        age = self._clock.now().timestamp() - entry["timestamp"]
        if age >= self._ttl:
            logger.debug("profile_cache_expired", extra={"age_seconds": age})
            self.clear()
            return None
        return CachedProfile(
            profile=entry["profile"],
            company=entry["company"],
            timestamp=entry["timestamp"],
        )

    def put(self, profile: ProfileInfo, company: CompanyInfo | None) -> CachedProfile:
        timestamp = self._clock.now().timestamp()
        self._store[self._key] = {
            "profile": profile,
            "company": company,
            "timestamp": timestamp,
        }
        return CachedProfile(profile=profile, company=company, timestamp=timestamp)

    def clear(self) -> None:
        self._store.pop(self._key, None)


class UserSession:
    """
    Authentication context of one signed-in user.

    Contract:
        Read paths may use the cached profile.  Writes call
        ``require_company_id(fresh=True)`` or ``require_admin()``, which
        re-read the profile row, so the role and company they act on are
        the stored ones.
    """

    def __init__(
        self,
        db_session: Session,
        user_id: UUID,
        *,
        clock: Clock | None = None,
        auth_config: AuthConfig | None = None,
        store: MutableMapping[str, Any] | None = None,
    ):
        auth_config = auth_config or AuthConfig()
        self.db_session = db_session
        self.user_id = user_id
        self._clock = clock or SystemClock()
        self._cache = ProfileCache(
            store if store is not None else {},
            auth_config.cache_key,
            auth_config.profile_cache_ttl_seconds,
            self._clock,
        )
        self._signed_out = False
        self._in_flight: set[str] = set()

    @property
    def cache(self) -> ProfileCache:
        return self._cache

    def profile(self) -> ProfileInfo:
        """The caller's profile, from cache while fresh."""
        return self._cached_or_load().profile

    def company(self) -> CompanyInfo | None:
        return self._cached_or_load().company

    @property
    def company_id(self) -> UUID | None:
        return self.profile().company_id

    @property
    def is_admin(self) -> bool:
        return self.profile().is_admin

    def fresh_company_id(self) -> UUID | None:
        """Authoritative company read; drops the cache on tenant change."""
        self._check_signed_in()
        company_id = resolve_tenant(self.db_session, self.user_id)
        cached = self._cache.get()
        if cached is not None and cached.profile.company_id != company_id:
            logger.info(
                "tenant_changed",
                extra={
                    "previous_company_id": str(cached.profile.company_id),
                    "current_company_id": str(company_id),
                },
            )
            self._cache.clear()
        return company_id

    def fresh_profile(self) -> ProfileInfo:
        """
        Authoritative profile read that replaces the cached entry.

        A demotion or deactivation is seen by the next write, not after
        the cache TTL.
        """
        company_id = self.fresh_company_id()
        previous = self._cache.get()
        profile = self._load(refresh=True).profile
        if previous is not None and previous.profile.role != profile.role:
            logger.info(
                "role_changed",
                extra={
                    "company_id": str(company_id),
                    "previous_role": previous.profile.role.value,
                    "current_role": profile.role.value,
                },
            )
        return profile

    def require_company_id(self, *, fresh: bool = False) -> UUID:
        company_id = self.fresh_profile().company_id if fresh else self.company_id
        if company_id is None:
            raise ForbiddenError("user has no company")
        return company_id

    def require_admin(self) -> UUID:
        """Company id of a caller whose stored role is admin right now."""
        company_id = self.require_company_id(fresh=True)
        if not self.is_admin:
            raise ForbiddenError("admin role required", str(company_id))
        return company_id

    def invalidate(self) -> None:
        self._cache.clear()
        logger.debug("profile_cache_invalidated", extra={"user_id": str(self.user_id)})

    def sign_out(self) -> None:
        self._cache.clear()
        self._in_flight.clear()
        self._signed_out = True
        logger.info("user_signed_out", extra={"user_id": str(self.user_id)})

    @contextmanager
    def in_flight(self, key: str) -> Iterator[None]:
        """Reject a second submission of the same operation while one runs."""
        if key in self._in_flight:
            logger.warning("duplicate_submission_rejected", extra={"submission_key": key})
            raise ConflictError("submission", key, "already in progress")
        self._in_flight.add(key)
        try:
            yield
        finally:
            self._in_flight.discard(key)

    # -------------------------------------------------------------------------

    def _check_signed_in(self) -> None:
        if self._signed_out:
            raise ForbiddenError("session is signed out")

    def _cached_or_load(self) -> CachedProfile:
        self._check_signed_in()
        cached = self._cache.get()
        if cached is not None and cached.profile.profile_id == self.user_id:
            return cached
        return self._load()

    def _load(self, *, refresh: bool = False) -> CachedProfile:
        row = self.db_session.execute(
            select(Profile)
            .where(Profile.id == self.user_id)
            .execution_options(populate_existing=refresh)
        ).scalar_one_or_none()
        if row is None:
            raise ForbiddenError("no profile for the authenticated user")
        if not row.is_active:
            raise ForbiddenError("profile is inactive", str(row.company_id))

        profile = ProfileInfo.from_row(row)
        company = None
        if row.company_id is not None:
            company_row = self.db_session.get(Company, row.company_id)
            if company_row is not None:
                company = CompanyInfo.from_row(company_row)

        cached = self._cache.put(profile, company)
        logger.debug(
            "profile_loaded",
            extra={"user_id": str(self.user_id), "has_company": company is not None},
        )
        return cached
