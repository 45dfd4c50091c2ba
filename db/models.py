"""
db/models.py — Audit Trail Table
==================================
One row per workflow action taken through the API: submissions, sale and
purchase requests, and every administrator decision (including denied ones).
Rows are append-only.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy import String, DateTime, Text, Integer, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Mapped, mapped_column

from db.session import Base


def new_uuid():
    return str(uuid.uuid4())


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    actor_id: Mapped[str] = mapped_column(String(255), nullable=False)   # ledger account
    actor_role: Mapped[str] = mapped_column(String(20))                 # user | admin
    action: Mapped[str] = mapped_column(String(100))                    # SUBMIT | ACCEPT | REJECT | DENIED ...
    module: Mapped[str] = mapped_column(String(50))                     # registration | sale | purchase
    subject_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)   # request or parcel id
    outcome: Mapped[str] = mapped_column(String(50), default="ok")      # ok | error code
    details: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    tx_hash: Mapped[Optional[str]] = mapped_column(String(130), nullable=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)


async def recent_entries(db: AsyncSession, limit: int = 50) -> List[AuditLog]:
    result = await db.execute(
        select(AuditLog).order_by(AuditLog.timestamp.desc()).limit(limit)
    )
    return list(result.scalars().all())
