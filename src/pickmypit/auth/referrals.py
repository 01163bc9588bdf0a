"""Referral codes and the one-time referral bonus.

Codes are 8 lowercase hex characters, generated server-side. A user can be
referred at most once: the bonus only applies while ``referred_by_id`` is
unset.
"""

from __future__ import annotations

import secrets

import structlog
from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from pickmypit.config import get_settings
from pickmypit.db.models import User

logger = structlog.get_logger()

REFERRAL_CODE_BYTES = 4


def generate_referral_code() -> str:
    return secrets.token_hex(REFERRAL_CODE_BYTES)


async def generate_unique_referral_code(db: AsyncSession) -> str:
    """Generate a referral code that no user holds yet."""
    for _ in range(10):
        code = generate_referral_code()
        existing = await db.execute(select(User.id).where(User.referral_code == code))
        if existing.scalar_one_or_none() is None:
            return code
    raise RuntimeError("Failed to generate unique referral code after 10 attempts")


async def apply_referral_bonus(db: AsyncSession, user: User, referral_code: str | None) -> bool:
    """Credit the referrer and the new user, at most once per referred user.

    Best-effort: an unknown code, a self-referral or a storage error is logged
    and reported as ``False``; it never fails the surrounding registration.
    The bonus runs in a savepoint so a failure leaves the caller's
    transaction usable.

    Returns:
        True if the bonus was applied.
    """
    code = (referral_code or "").strip()
    if not code or user.referred_by_id is not None:
        return False

    settings = get_settings()
    try:
        async with db.begin_nested():
            result = await db.execute(select(User).where(User.referral_code == code))
            referrer = result.scalar_one_or_none()
            if referrer is None or referrer.id == user.id:
                logger.info("referral_code_ignored", user_id=user.id, referral_code=code)
                return False

            await db.execute(
                update(User)
                .where(User.id == referrer.id)
                .values(coins=User.coins + settings.referral_referrer_bonus)
                .execution_options(synchronize_session=False)
            )
            user.referred_by_id = referrer.id
            user.coins = settings.referral_referee_bonus
    except SQLAlchemyError:
        logger.exception("referral_bonus_failed", user_id=user.id, referral_code=code)
        return False

    logger.info(
        "referral_bonus_applied",
        user_id=user.id,
        referrer_id=referrer.id,
        referrer_bonus=settings.referral_referrer_bonus,
        referee_bonus=settings.referral_referee_bonus,
    )
    return True
