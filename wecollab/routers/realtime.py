# wecollab/routers/realtime.py
# WebSocket relay of Redis pub/sub change events

import asyncio
import json
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect, status

from wecollab.auth import decode_token
from wecollab.middleware.error_handler import AppError
from wecollab.realtime.feed import DELETE, RealtimeFeed, dashboard_channel, get_feed
from wecollab.repositories.dashboard_repository import DashboardRepository
from wecollab.services.access import authorize_channel
from wecollab.utils.logger import log_exception, log_info

router = APIRouter(tags=["Realtime"])

# close code once the subscriber no longer belongs to the dashboard
ACCESS_REVOKED = 4403


def get_repository() -> DashboardRepository:
    return DashboardRepository()


def revokes_access(payload, user_id: UUID) -> bool:
    """True for a dashboard change event that ends user_id's access."""
    change = json.loads(payload)
    if change.get("event") != DELETE:
        return False
    if change.get("table") == "dashboards":
        return True
    record = change.get("record") or {}
    return change.get("table") == "dashboard_members" and str(record.get("user_id")) == str(user_id)


async def _relay(websocket: WebSocket, feed: RealtimeFeed, channel: str) -> None:
    async for payload in feed.listen(channel):
        await websocket.send_text(payload)


async def _watch_access(feed: RealtimeFeed, dashboard_id: UUID, user_id: UUID) -> None:
    async for payload in feed.listen(dashboard_channel(dashboard_id)):
        if revokes_access(payload, user_id):
            return
    # the relay decides when an exhausted feed ends the subscription
    await asyncio.Event().wait()


async def _drain(websocket: WebSocket) -> None:
    # client frames are ignored; receiving detects disconnect
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        return


@router.websocket("/realtime/{channel}")
async def realtime_socket(
    websocket: WebSocket,
    channel: str,
    token: Optional[str] = Query(None),
    feed: RealtimeFeed = Depends(get_feed),
    repo: DashboardRepository = Depends(get_repository),
):
    """
    Subscribe to one channel (timer_states:{widget}, chat:{dashboard},
    dashboard:{dashboard} or invites:{email}).

    Rejected handshakes close with 4000 + HTTP status of the error. An open
    subscription closes with 4403 once the user loses access to the dashboard
    and with 1011 when the broker feed fails.
    """
    try:
        user = decode_token(token)
        dashboard_id = await authorize_channel(repo, user.id, user.email, channel)
    except AppError as e:
        await websocket.close(code=4000 + e.status_code, reason=e.message)
        return

    await websocket.accept()
    log_info(f"realtime subscribe {channel} by {user.id}")
    relay = asyncio.create_task(_relay(websocket, feed, channel))
    receiver = asyncio.create_task(_drain(websocket))
    tasks = {relay, receiver}
    watcher = None
    if dashboard_id is not None:
        watcher = asyncio.create_task(_watch_access(feed, dashboard_id, user.id))
        tasks.add(watcher)

    try:
        done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    if receiver in done:
        log_info(f"realtime unsubscribe {channel} by {user.id}")
        return
    if watcher in done and watcher.exception() is None:
        log_info(f"realtime access revoked {channel} for {user.id}")
        await websocket.close(code=ACCESS_REVOKED, reason="Access revoked")
        return
    for task in done:
        if task.exception() is not None:
            try:
                task.result()
            except Exception as e:
                log_exception(e, f"realtime relay {channel}")
    await websocket.close(code=status.WS_1011_INTERNAL_ERROR)
