"""Service layer for API key (session) operations."""
import hashlib
import secrets
from datetime import UTC, datetime, timedelta
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tenantdesk.core.request_context import Principal
from tenantdesk.models.api_session import ApiSession
from tenantdesk.schemas.api_key import ApiKeyCreate
from tenantdesk.schemas.common import ensure_utc

KEY_PREFIX = "td_"


def generate_key() -> tuple[str, str, str]:
    """
    Generate a secure API key.

    Returns:
        Tuple of (plaintext_key, key_hash, key_prefix).
        The plaintext should only be shown once at creation.
    """
    raw = secrets.token_urlsafe(32)
    plaintext = f"{KEY_PREFIX}{raw}"
    key_hash = hash_key(plaintext)
    key_prefix = plaintext[:12]  # "td_" + first 9 chars of raw
    return plaintext, key_hash, key_prefix


def hash_key(key: str) -> str:
    """Hash a key for comparison against stored hashes."""
    return hashlib.sha256(key.encode()).hexdigest()


async def create_api_key(
    db: AsyncSession,
    owner: Principal,
    data: ApiKeyCreate,
) -> tuple[ApiSession, str]:
    """
    Create a new API key owned by `owner`.

    Returns:
        Tuple of (ApiSession model, plaintext_key).
        The plaintext key is only available at creation time.
    """
    plaintext, key_hash, key_prefix = generate_key()

    session = ApiSession(
        owner_id=owner.id,
        owner_type=owner.type.value,
        name=data.name,
        key_hash=key_hash,
        key_prefix=key_prefix,
        expires_at=datetime.now(UTC) + timedelta(days=data.expires_in_days),
    )
    db.add(session)
    await db.flush()
    await db.commit()

    return session, plaintext


async def list_api_keys(db: AsyncSession, owner: Principal) -> list[ApiSession]:
    """All keys of `owner`, newest first (without plaintext)."""
    result = await db.execute(
        select(ApiSession)
        .where(ApiSession.owner_id == owner.id, ApiSession.owner_type == owner.type.value)
        .order_by(ApiSession.created_at.desc()),
    )
    return list(result.scalars().all())


async def delete_api_key(db: AsyncSession, owner: Principal, key_id: UUID) -> bool:
    """
    Delete (revoke) a key.

    Returns:
        True if deleted, False if not found or owned by someone else.
    """
    result = await db.execute(
        select(ApiSession).where(
            ApiSession.id == key_id,
            ApiSession.owner_id == owner.id,
            ApiSession.owner_type == owner.type.value,
        ),
    )
    session = result.scalar_one_or_none()
    if session is None:
        return False

    await db.delete(session)
    await db.commit()
    return True


async def validate_api_key(db: AsyncSession, plaintext_key: str) -> ApiSession | None:
    """
    Return the session for a plaintext key if it exists and has not expired.

    Hashes the input before lookup so the stored hash is the only comparison.
    Updates last_used_at on success (flush only; the request session commits).
    """
    result = await db.execute(
        select(ApiSession).where(ApiSession.key_hash == hash_key(plaintext_key)),
    )
    session = result.scalar_one_or_none()
    if session is None:
        return None

    now = datetime.now(UTC)
    if now >= ensure_utc(session.expires_at):
        return None

    session.last_used_at = now
    await db.flush()
    return session
