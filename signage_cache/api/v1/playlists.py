"""
Signage Cache - Playlists API
Local cache access for the sync and playback collaborators
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from typing import List

from ...schemas.playlist import MarkCachedRequest, MediaItem, Playlist
from ...services import MediaCacheService
from ..dependencies import get_cache

router = APIRouter()


@router.get("/playlists", response_model=List[Playlist])
def list_playlists(
    verify_files: bool = Query(False, description="Hash-check local copies"),
    cache: MediaCacheService = Depends(get_cache),
):
    """List cached playlists, emergency content first"""
    return cache.list_playlists(verify_files=verify_files)


@router.get("/playlists/{playlist_id}", response_model=Playlist)
def get_playlist(
    playlist_id: str,
    verify_files: bool = Query(False, description="Hash-check local copies"),
    cache: MediaCacheService = Depends(get_cache),
):
    """Get a cached playlist with its items in playback order"""
    playlist = cache.get_playlist(playlist_id, verify_files=verify_files)

    if not playlist:
        raise HTTPException(status_code=404, detail="Playlist not found")

    return playlist


@router.put("/playlists/{playlist_id}", response_model=Playlist)
def upsert_playlist(
    playlist_id: str, playlist: Playlist, cache: MediaCacheService = Depends(get_cache)
):
    """Replace a playlist and its item set (sync result)"""
    if playlist.id != playlist_id:
        raise HTTPException(status_code=422, detail="Playlist id does not match URL")

    return cache.upsert_playlist(playlist)


@router.delete("/playlists/{playlist_id}", status_code=204)
def delete_playlist(playlist_id: str, cache: MediaCacheService = Depends(get_cache)):
    """Delete a playlist and its items (no-op if absent)"""
    cache.delete_playlist(playlist_id)


@router.get("/playlists/{playlist_id}/sync-status")
def sync_status(
    playlist_id: str,
    version: int = Query(..., ge=0, description="Version announced by the remote source"),
    cache: MediaCacheService = Depends(get_cache),
):
    """Whether the remote version requires a re-sync"""
    return {"playlist_id": playlist_id, "needs_sync": cache.needs_sync(playlist_id, version)}


@router.get("/playlists/{playlist_id}/pending", response_model=List[MediaItem])
def pending_downloads(playlist_id: str, cache: MediaCacheService = Depends(get_cache)):
    """Downloadable items still missing a valid local copy"""
    return cache.pending_downloads(playlist_id)


@router.post("/playlists/{playlist_id}/items/{item_id}/cached", response_model=MediaItem)
def mark_item_cached(
    playlist_id: str,
    item_id: str,
    request: MarkCachedRequest,
    cache: MediaCacheService = Depends(get_cache),
):
    """Record a finished download"""
    return cache.mark_item_cached(playlist_id, item_id, request.local_path, request.hash)


@router.get("/playlists/{playlist_id}/items/{item_id}/cached")
def item_cache_status(playlist_id: str, item_id: str, cache: MediaCacheService = Depends(get_cache)):
    """Whether the local copy exists and matches its hash"""
    return {
        "playlist_id": playlist_id,
        "item_id": item_id,
        "cached": cache.is_item_cached(playlist_id, item_id),
    }
