"""Assembles codec, ledgers, gate and session service into one runtime."""

from dataclasses import dataclass
from datetime import timedelta

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from sessiongate.core.clock import Clock, utc_now
from sessiongate.core.config import Settings
from sessiongate.services.gatekeeper import Gatekeeper
from sessiongate.services.profiles import ProfileDirectory, SqlProfileDirectory
from sessiongate.services.revocation import (
    PasswordChangeCutoffLedger,
    SqlRevocationStore,
    TokenRevocationLedger,
)
from sessiongate.services.revocation_sweeper import RevocationSweeper
from sessiongate.services.sessions import SessionService
from sessiongate.services.token_codec import TokenCodec


@dataclass
class SessionRuntime:
    codec: TokenCodec
    revocations: TokenRevocationLedger
    cutoffs: PasswordChangeCutoffLedger
    profiles: ProfileDirectory
    gatekeeper: Gatekeeper
    sessions: SessionService
    sweeper: RevocationSweeper


def build_codec(settings: Settings, clock: Clock = utc_now) -> TokenCodec:
    return TokenCodec(
        secret=settings.effective_secret_key,
        ttl=timedelta(days=settings.session_ttl_days),
        algorithm=settings.jwt_algorithm,
        clock=clock,
    )


def build_runtime(
    settings: Settings,
    codec: TokenCodec,
    revocations: TokenRevocationLedger,
    cutoffs: PasswordChangeCutoffLedger,
    profiles: ProfileDirectory,
    clock: Clock = utc_now,
) -> SessionRuntime:
    """Wire the components around an already-constructed codec and stores.

    The stores must decode credentials with the same ``codec``.
    """
    return SessionRuntime(
        codec=codec,
        revocations=revocations,
        cutoffs=cutoffs,
        profiles=profiles,
        gatekeeper=Gatekeeper(
            codec,
            revocations,
            cutoffs,
            profiles,
            lookup_timeout=settings.ledger_lookup_timeout_seconds,
        ),
        sessions=SessionService(codec, revocations, cutoffs, clock=clock),
        sweeper=RevocationSweeper(
            revocations,
            interval_seconds=settings.revocation_sweep_interval_seconds,
            clock=clock,
        ),
    )


def build_sql_runtime(
    settings: Settings,
    session_factory: async_sessionmaker[AsyncSession],
) -> SessionRuntime:
    """Production wiring: one shared database store backs both ledgers."""
    codec = build_codec(settings)
    store = SqlRevocationStore(session_factory, codec)
    return build_runtime(
        settings,
        codec=codec,
        revocations=store,
        cutoffs=store,
        profiles=SqlProfileDirectory(session_factory),
    )
