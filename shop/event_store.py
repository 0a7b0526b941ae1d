"""
Shop Service — イベントストア

商品・注文のすべての状態変更をイベントとして追記する。
バージョン番号による楽観的ロックで同時書き込みを防ぐ:
同じ aggregate_id + version の組み合わせは UNIQUE 制約違反になる。

イベントの追記は呼び出し側のトランザクションに含まれる（commit は呼び出し側）。
"""

import json
from datetime import datetime, timezone

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession


async def append_event(
    session: AsyncSession,
    aggregate_id: str,
    aggregate_type: str,
    event_type: str,
    event_data: dict,
    expected_version: int,
) -> int:
    new_version = expected_version + 1
    await session.execute(
        text("""
            INSERT INTO event_store
                (aggregate_id, aggregate_type, event_type, event_data, version, created_at)
            VALUES
                (:agg_id, :agg_type, :evt_type, :evt_data, :version, :now)
        """),
        {
            "agg_id": aggregate_id,
            "agg_type": aggregate_type,
            "evt_type": event_type,
            "evt_data": json.dumps(event_data, default=str),
            "version": new_version,
            "now": datetime.now(timezone.utc).isoformat(),
        },
    )
    return new_version


async def latest_version(session: AsyncSession, aggregate_id: str) -> int:
    """集約の最新バージョン。イベントが無ければ 0。"""
    result = await session.execute(
        text("SELECT MAX(version) AS version FROM event_store WHERE aggregate_id = :agg_id"),
        {"agg_id": aggregate_id},
    )
    return result.scalar() or 0


async def load_events(session: AsyncSession, aggregate_id: str) -> list[dict]:
    """指定した集約の全イベントをバージョン順に読み出す。"""
    result = await session.execute(
        text("""
            SELECT event_type, event_data, version, created_at
            FROM event_store
            WHERE aggregate_id = :agg_id
            ORDER BY version ASC
        """),
        {"agg_id": aggregate_id},
    )
    return [
        {
            "event_type": row.event_type,
            "event_data": json.loads(row.event_data),
            "version": row.version,
            "created_at": row.created_at,
        }
        for row in result.fetchall()
    ]


async def load_all_events(session: AsyncSession) -> list[dict]:
    """すべてのイベントを追記順に返す。"""
    result = await session.execute(
        text("""
            SELECT aggregate_id, aggregate_type, event_type, event_data, version, created_at
            FROM event_store
            ORDER BY id ASC
        """),
    )
    return [
        {
            "aggregate_id": row.aggregate_id,
            "aggregate_type": row.aggregate_type,
            "event_type": row.event_type,
            "event_data": json.loads(row.event_data),
            "version": row.version,
            "created_at": row.created_at,
        }
        for row in result.fetchall()
    ]
