"""
Authenticated download of resolved media.

Direct URLs are streamed to disk with the browser's cookies. Manifest URLs are
rebuilt: the best video and audio tracks are downloaded segment by segment
into temporary files, then combined by ffmpeg without re-encoding.
"""
import os
import subprocess
import tempfile
import threading

import ffmpeg
import requests

from errors import DeadlineExceeded, FetchError, RemuxError
from manifest import highest_bitrate, load_manifest
from media import DirectURL, ManifestURL

import logger
log = logger

TEMP_PREFIX = "bbplus"
CHUNK_SIZE = 64 * 1024
USER_AGENT = ("Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
              "(KHTML, like Gecko) Chrome/134.0.0.0 Safari/537.36")


def build_http_session(cookies, referrer=""):
    """
    Create a requests session carrying the browser cookies and referrer.

    Args:
        cookies (list): Cookie snapshots from the browser
        referrer (str): Referer header value; omitted when empty

    Returns:
        requests.Session: Session ready for the download
    """
    session = requests.Session()
    session.headers["User-Agent"] = USER_AGENT
    if referrer:
        session.headers["Referer"] = referrer
    for cookie in cookies:
        rest = {}
        if cookie.http_only:
            rest["HttpOnly"] = None
        if cookie.same_site:
            rest["SameSite"] = cookie.same_site
        session.cookies.set(
            cookie.name,
            cookie.value,
            domain=cookie.domain,
            path=cookie.path or "/",
            secure=cookie.secure,
            expires=cookie.expires,
            rest=rest,
        )
    return session


class Fetcher:
    """Downloads DirectURL and ManifestURL references to local files."""

    def __init__(self, deadline, ffmpeg_cmd="ffmpeg", session_factory=build_http_session):
        """
        Args:
            deadline (Deadline): Run deadline; bounds requests and ffmpeg
            ffmpeg_cmd (str): ffmpeg executable
            session_factory (callable): Builds the HTTP session from (cookies, referrer)
        """
        self.deadline = deadline
        self.ffmpeg_cmd = ffmpeg_cmd
        self.session_factory = session_factory

    def fetch(self, reference, cookies, referrer, destination):
        """
        Download reference to destination.

        Raises:
            FetchError: On transport, manifest or write failures, and on HTTP error
                statuses while rebuilding a manifest
            RemuxError: If ffmpeg fails to combine the tracks
            DeadlineExceeded: If the run deadline elapses
        """
        self.deadline.check("fetch")
        session = self.session_factory(cookies, referrer)
        try:
            if isinstance(reference, ManifestURL):
                self._fetch_manifest(session, reference.url, destination)
            elif isinstance(reference, DirectURL):
                log.info(f"Downloading '{reference.url}' to '{destination}'")
                with self._open_output(destination) as f:
                    self._stream(session, reference.url, f, strict=False)
                log.info(f"Download completed: {destination}")
            else:
                raise TypeError(f"unsupported media reference: {reference!r}")
        finally:
            session.close()

    def _open_output(self, path):
        try:
            return open(path, "wb")
        except OSError as e:
            raise FetchError(f"failed to open '{path}' for writing: {e}") from e

    def _get(self, session, url, strict=True):
        """
        Start a streaming GET bounded by the deadline.

        With strict unset an error status is only logged and the body is
        still returned, as the server sent it.
        """
        self.deadline.check("fetch")
        try:
            response = session.get(url, stream=True, timeout=self.deadline.remaining())
        except requests.RequestException as e:
            if self.deadline.expired():
                raise DeadlineExceeded("fetch") from e
            raise FetchError(f"request to '{url}' failed: {e}") from e
        if response.status_code >= 400:
            if strict:
                response.close()
                raise FetchError(f"request to '{url}' failed: HTTP {response.status_code}")
            log.warning(f"Server answered HTTP {response.status_code} for '{url}', saving the body anyway")
        return response

    def _stream(self, session, url, output, strict=True):
        """
        Append the body of url to the open binary file output.

        A timer closes the response when the deadline elapses, so a slow body
        cannot keep the download going past it.
        """
        response = self._get(session, url, strict=strict)
        watchdog = threading.Timer(self.deadline.remaining(), response.close)
        watchdog.daemon = True
        watchdog.start()
        try:
            for chunk in response.iter_content(CHUNK_SIZE):
                self.deadline.check("fetch")
                if chunk:
                    output.write(chunk)
            # A body cut short by the watchdog ends the loop without an error
            self.deadline.check("fetch")
        except DeadlineExceeded:
            raise
        except requests.RequestException as e:
            if self.deadline.expired():
                raise DeadlineExceeded("fetch") from e
            raise FetchError(f"reading '{url}' failed: {e}") from e
        except OSError as e:
            if self.deadline.expired():
                raise DeadlineExceeded("fetch") from e
            raise FetchError(f"failed to save '{url}': {e}") from e
        except Exception as e:
            # Reads on a response closed under them fail in assorted ways
            if self.deadline.expired():
                raise DeadlineExceeded("fetch") from e
            raise
        finally:
            watchdog.cancel()
            response.close()

    def _get_text(self, session, url):
        response = self._get(session, url)
        try:
            return response.text
        except requests.RequestException as e:
            raise FetchError(f"reading '{url}' failed: {e}") from e
        finally:
            response.close()

    def _fetch_manifest(self, session, url, destination):
        log.info(f"Fetching manifest '{url}'")
        manifest = load_manifest(url, lambda u: self._get_text(session, u))
        video = highest_bitrate(manifest.videos)
        audio = highest_bitrate(manifest.audios)

        temp_paths = []
        try:
            video_path = self._download_track(session, video, destination, temp_paths)
            audio_path = None
            if audio is not None:
                audio_path = self._download_track(session, audio, destination, temp_paths)
            else:
                log.warning(f"No separate audio track for {destination}")
            self.remux(video_path, audio_path, destination)
        finally:
            for path in temp_paths:
                try:
                    os.remove(path)
                except OSError as e:
                    log.warning(f"Failed to remove temporary file {path}: {e}")

    def _download_track(self, session, track, destination, temp_paths):
        """Write one track to a new temporary file and return its path."""
        try:
            handle = tempfile.NamedTemporaryFile(prefix=TEMP_PREFIX, suffix=".mp4", delete=False)
        except OSError as e:
            raise FetchError(f"failed to create temp {track.kind} file: {e}") from e
        temp_paths.append(handle.name)
        log.info(f"Downloading {destination} {track.kind} stream "
                 f"({track.bitrate} bps, {len(track.segment_urls)} segments) to {handle.name}")
        with handle:
            try:
                if track.init_data:
                    handle.write(track.init_data)
            except OSError as e:
                raise FetchError(f"failed to write {track.kind} init segment: {e}") from e
            if track.init_url:
                self._stream(session, track.init_url, handle)
            for segment_url in track.segment_urls:
                self._stream(session, segment_url, handle)
        log.info(f"Downloaded {destination} {track.kind} stream to {handle.name}")
        return handle.name

    def remux(self, video_path, audio_path, destination):
        """
        Combine the video and audio files into destination with stream copy.

        Raises:
            RemuxError: If ffmpeg is missing or exits non-zero; stderr is kept
            DeadlineExceeded: If ffmpeg is still running at the deadline
        """
        self.deadline.check("remux")
        inputs = [ffmpeg.input(video_path)]
        if audio_path:
            inputs.append(ffmpeg.input(audio_path))
        stream = ffmpeg.output(*inputs, destination, c="copy")
        log.debug(f"FFmpeg command: {' '.join(ffmpeg.compile(stream, cmd=self.ffmpeg_cmd, overwrite_output=True))}")

        try:
            process = ffmpeg.run_async(stream, cmd=self.ffmpeg_cmd, pipe_stdout=True,
                                       pipe_stderr=True, overwrite_output=True)
        except OSError as e:
            raise RemuxError(f"cannot run {self.ffmpeg_cmd}: {e}") from e

        try:
            _, stderr = process.communicate(timeout=self.deadline.remaining())
        except subprocess.TimeoutExpired as e:
            process.kill()
            process.communicate()
            raise DeadlineExceeded("remux") from e

        stderr = (stderr or b"").decode("utf-8", errors="replace")
        if process.returncode != 0:
            log.error(f"FFmpeg failed with code {process.returncode}")
            log.debug(f"FFmpeg stderr: {stderr[-2000:]}")
            raise RemuxError(
                f"failed to combine video and audio streams into {destination}: "
                f"ffmpeg exited with {process.returncode}",
                stderr=stderr,
            )
        log.info(f"Combined streams into {destination}")
