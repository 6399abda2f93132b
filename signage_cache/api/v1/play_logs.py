"""
Signage Cache - Play Logs API
"""

from fastapi import APIRouter, Depends, Query
from typing import List

from ...schemas.play_log import PlayLogAcknowledge, PlayLogCreate, PlayLogResponse
from ...services import PlayLogService
from ..dependencies import get_play_logs

router = APIRouter()


@router.post("/play-logs", response_model=PlayLogResponse, status_code=201)
def record_play(log: PlayLogCreate, play_logs: PlayLogService = Depends(get_play_logs)):
    """Record a proof of play"""
    return play_logs.record_play(log.playlist_id, log.media_id, log.duration_ms, started_at=log.started_at)


@router.get("/play-logs", response_model=List[PlayLogResponse])
def pending_logs(
    limit: int = Query(50, ge=1, le=500),
    play_logs: PlayLogService = Depends(get_play_logs),
):
    """Logs waiting to be flushed, oldest first"""
    return play_logs.pending_logs(limit=limit)


@router.post("/play-logs/acknowledge")
def acknowledge_logs(ack: PlayLogAcknowledge, play_logs: PlayLogService = Depends(get_play_logs)):
    """Drop logs the remote side has stored"""
    count = play_logs.acknowledge(ack.ids)

    return {"deleted": count, "message": f"Deleted {count} play logs"}
