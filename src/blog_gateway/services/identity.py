"""Best-effort mirroring of resolved principals into the local users table."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import Table
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from blog_gateway.db.time import unix_now
from blog_gateway.models import User
from blog_gateway.schemas.principal import Principal

logger = logging.getLogger(__name__)


def dialect_insert(db: Session, table: Table) -> Any:
    """Return an INSERT construct supporting ``on_conflict_do_update``."""
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert(table)
    if dialect == "sqlite":
        return sqlite.insert(table)
    raise NotImplementedError(f"Upserts are not supported on {dialect}")


def upsert_user(db: Session, principal: Principal) -> None:
    """Insert ``principal`` into the mirror or overwrite its profile columns."""
    now = unix_now()
    table = User.__table__
    stmt = dialect_insert(db, table).values(
        id=principal.id,
        github_id=principal.external_id,
        username=principal.username,
        email=principal.email,
        avatar_url=principal.avatar_url,
        role=principal.role,
        created_at=now,
        updated_at=now,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[table.c.id],
        set_={
            "username": stmt.excluded.username,
            "email": stmt.excluded.email,
            "avatar_url": stmt.excluded.avatar_url,
            "role": stmt.excluded.role,
            "github_id": stmt.excluded.github_id,
            "updated_at": stmt.excluded.updated_at,
        },
    )
    db.execute(stmt)
    db.commit()


def sync_principal(db: Session, principal: Principal) -> bool:
    """Mirror ``principal`` locally, swallowing every failure.

    Authorization never reads the mirror, so a failed write (for example a
    missing table before migrations ran) only costs author metadata on
    listings. Returns True when the row was written.
    """
    try:
        upsert_user(db, principal)
        return True
    except Exception:
        logger.warning("Skipping user mirror update for %s", principal.id, exc_info=True)
        try:
            db.rollback()
        except Exception:
            logger.debug("Rollback after mirror failure also failed", exc_info=True)
        return False
