"""
Streaming manifest parsing.

Two manifest flavours are understood:

* Vimeo's master.json, a JSON document listing separate video and audio
  tracks, each with a base64 init segment and a list of relative segment URLs.
* HLS master playlists (.m3u8), parsed with the m3u8 library; the best variant
  and its audio rendition become the video and audio tracks.

Both are reduced to Track records: an ordered list of absolute segment URLs,
optionally preceded by inline or remote initialization data.
"""
import base64
import binascii
import json
from dataclasses import dataclass, field
from typing import List, Optional
from urllib.parse import urljoin, urlparse

import m3u8

from errors import FetchError

import logger
log = logger


@dataclass
class Track:
    """One media track: optional init data or URL, then segments in play order."""

    id: str
    kind: str
    bitrate: int
    init_data: Optional[bytes]
    init_url: Optional[str]
    segment_urls: List[str] = field(default_factory=list)


@dataclass
class Manifest:
    videos: List[Track]
    audios: List[Track]


def highest_bitrate(tracks):
    """Return the track with the highest bitrate, or None for an empty list."""
    if not tracks:
        return None
    return max(tracks, key=lambda t: t.bitrate or 0)


def is_hls(url, text=""):
    return urlparse(url).path.endswith(".m3u8") or text.lstrip().startswith("#EXTM3U")


def load_manifest(url, get_text):
    """
    Download and parse a manifest.

    Args:
        url (str): Manifest URL
        get_text (callable): Returns the body of a URL as text; used for the
            manifest itself and, for HLS, the media playlists it references

    Returns:
        Manifest: Video and audio tracks

    Raises:
        FetchError: If the manifest cannot be parsed or lists no video track
    """
    text = get_text(url)
    if is_hls(url, text):
        manifest = load_hls(url, text, get_text)
    else:
        try:
            data = json.loads(text)
        except ValueError as e:
            raise FetchError(f"invalid master JSON from '{url}': {e}") from e
        manifest = parse_master_json(url, data)

    if not manifest.videos:
        raise FetchError(f"manifest '{url}' lists no video track")
    log.debug(f"Manifest has {len(manifest.videos)} video and {len(manifest.audios)} audio tracks")
    return manifest


def parse_master_json(url, data):
    """
    Build tracks from a Vimeo master.json document.

    Segment URLs resolve against the manifest URL, then the document base_url,
    then the track base_url.
    """
    if not isinstance(data, dict):
        raise FetchError("master JSON is not an object")
    base = urljoin(url, data.get("base_url") or "")
    try:
        videos = [_vimeo_track(base, entry, "video") for entry in data.get("video") or []]
        audios = [_vimeo_track(base, entry, "audio") for entry in data.get("audio") or []]
    except (KeyError, TypeError, binascii.Error) as e:
        raise FetchError(f"malformed master JSON track: {e}") from e
    return Manifest(videos, audios)


def _vimeo_track(base, entry, kind):
    track_base = urljoin(base, entry.get("base_url") or "")
    init_data = None
    init_url = None
    if entry.get("init_segment"):
        init_data = base64.b64decode(entry["init_segment"])
    elif entry.get("init_segment_url"):
        init_url = urljoin(track_base, entry["init_segment_url"])
    segments = [urljoin(track_base, segment["url"]) for segment in entry.get("segments") or []]
    return Track(
        id=str(entry.get("id", "")),
        kind=kind,
        bitrate=entry.get("bitrate") or entry.get("avg_bitrate") or 0,
        init_data=init_data,
        init_url=init_url,
        segment_urls=segments,
    )


def load_hls(url, text, get_text):
    """
    Build tracks from an HLS playlist.

    A master playlist yields its highest-bandwidth variant as the only video
    track and, when the variant names an audio group, that group's audio
    rendition (the default one if there are several). A media playlist is
    a single video track.
    """
    playlist = m3u8.loads(text, uri=url)
    if not playlist.is_variant:
        return Manifest([_hls_track(url, playlist, "video", 0)], [])

    variants = [p for p in playlist.playlists if p.uri]
    if not variants:
        return Manifest([], [])
    best = max(variants, key=lambda p: p.stream_info.bandwidth or 0)
    video_url = urljoin(url, best.uri)
    video = _hls_track(video_url, m3u8.loads(get_text(video_url), uri=video_url),
                       "video", best.stream_info.bandwidth or 0)

    audios = []
    group = best.stream_info.audio
    renditions = [m for m in playlist.media
                  if m.type == "AUDIO" and m.uri and (not group or m.group_id == group)]
    if renditions:
        rendition = next((m for m in renditions if m.default == "YES"), renditions[0])
        audio_url = urljoin(url, rendition.uri)
        audios.append(_hls_track(audio_url, m3u8.loads(get_text(audio_url), uri=audio_url),
                                 "audio", 0))
    return Manifest([video], audios)


def _hls_track(url, playlist, kind, bitrate):
    for key in playlist.keys:
        if key is not None and key.method and key.method.upper() != "NONE":
            raise FetchError(f"encrypted HLS playlist is not supported: '{url}'")
    init_url = None
    if playlist.segment_map:
        init_url = urljoin(url, playlist.segment_map[0].uri)
    return Track(
        id=url,
        kind=kind,
        bitrate=bitrate,
        init_data=None,
        init_url=init_url,
        segment_urls=[urljoin(url, segment.uri) for segment in playlist.segments],
    )
