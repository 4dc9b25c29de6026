"""Ethical Media Analyzer - YouTube source
Copyright (c) 2026 beautifulplanet
Licensed under MIT License

Resolves YouTube URLs to transcripts: existing captions first, then a
downloaded audio track transcribed by the LLM.
"""

import os
import re
import asyncio
import logging
import mimetypes
import tempfile
from dataclasses import dataclass
from typing import Optional, TYPE_CHECKING
from urllib.parse import urlparse, parse_qs
from youtube_transcript_api import YouTubeTranscriptApi
from yt_dlp import YoutubeDL

from errors import InvalidUrl, NoTranscriptProduced
from prompts import TRANSCRIPTION_INSTRUCTION

if TYPE_CHECKING:
    from llm_client import LLMClient

logger = logging.getLogger(__name__)

# Video ID: 11 chars, alphanumeric + hyphen/underscore
VIDEO_ID_PATTERN = re.compile(r'^[a-zA-Z0-9_-]{11}$')
VIDEO_ID_IN_TEXT = re.compile(r'(?:youtu\.be/|v/|u/\w/|embed/|shorts/|live/|watch\?v=|&v=)([^#&?/]*)')

YOUTUBE_HOSTS = {"youtube.com", "www.youtube.com", "m.youtube.com", "music.youtube.com", "youtube-nocookie.com", "www.youtube-nocookie.com"}
PATH_PREFIXES = ("/embed/", "/v/", "/shorts/", "/live/")

# yt-dlp format: smallest audio-only stream, m4a preferred for model compatibility
AUDIO_FORMAT = "worstaudio[ext=m4a]/worstaudio/worst"
DEFAULT_AUDIO_MIME = "audio/mp4"
AUDIO_MIME_TYPES = {
    ".m4a": "audio/mp4",
    ".mp4": "audio/mp4",
    ".webm": "audio/webm",
    ".mp3": "audio/mpeg",
    ".opus": "audio/ogg",
    ".ogg": "audio/ogg",
}


@dataclass
class TranscriptLookup:
    transcript: Optional[str]
    video_id: str


def extract_video_id(url: str) -> Optional[str]:
    """
    Extract the 11-character YouTube video ID from common URL formats:
    youtu.be/<id>, youtube.com/watch?v=<id>, /embed/<id>, /v/<id>, /shorts/<id>.
    Returns None when no valid ID can be found.
    """
    url = (url or "").strip()
    if not url:
        return None

    candidate = None
    parsed = urlparse(url)
    host = (parsed.hostname or "").lower()
    if host == "youtu.be":
        candidate = parsed.path.lstrip("/").split("/")[0]
    elif host in YOUTUBE_HOSTS:
        candidate = parse_qs(parsed.query).get("v", [None])[0]
        if not candidate:
            for prefix in PATH_PREFIXES:
                if parsed.path.startswith(prefix):
                    candidate = parsed.path[len(prefix):].split("/")[0]
                    break

    if candidate and VIDEO_ID_PATTERN.match(candidate):
        return candidate

    # Fallback for scheme-less or otherwise odd URLs
    match = VIDEO_ID_IN_TEXT.search(url)
    if match and VIDEO_ID_PATTERN.match(match.group(1)):
        return match.group(1)
    return None


class TranscriptResolver:
    """Looks up existing captions for a YouTube URL."""

    def __init__(self, languages: Optional[list[str]] = None):
        self.languages = languages or ["es", "en"]

    async def resolve_transcript(self, url: str) -> TranscriptLookup:
        """
        Resolve a URL to its video ID and, when available, its caption text.

        Raises:
            InvalidUrl: no YouTube video ID could be extracted
        """
        video_id = extract_video_id(url)
        if not video_id:
            raise InvalidUrl()

        transcript = await self._fetch_transcript(video_id)
        return TranscriptLookup(transcript=transcript or None, video_id=video_id)

    async def _fetch_transcript(self, video_id: str) -> Optional[str]:
        """Fetch captions; any lookup failure means "no transcript"."""
        try:
            # Run in thread pool since youtube_transcript_api is blocking
            loop = asyncio.get_running_loop()

            def fetch_transcript():
                ytt_api = YouTubeTranscriptApi()
                return ytt_api.fetch(video_id, languages=self.languages)

            transcript_list = await loop.run_in_executor(None, fetch_transcript)

            full_text = " ".join(segment.text for segment in transcript_list).strip()
            logger.info(f"📜 Found captions for {video_id} ({len(full_text)} chars)")
            return full_text or None

        except Exception as e:
            logger.warning(f"Transcript lookup failed for {video_id}: {e}")
            return None


class RemoteTranscriber:
    """Downloads a video's audio track and transcribes it with the LLM."""

    def __init__(self, llm: "LLMClient", max_media_bytes: int = 20 * 1024 * 1024):
        self.llm = llm
        self.max_media_bytes = max_media_bytes

    async def transcribe_remote(self, video_id: str) -> str:
        """
        Transcribe a YouTube video that has no captions.

        Raises:
            NoTranscriptProduced: the audio is too large or yielded no text
        """
        loop = asyncio.get_running_loop()
        audio_bytes, filename = await loop.run_in_executor(None, self._download_audio, video_id)

        if len(audio_bytes) > self.max_media_bytes:
            raise NoTranscriptProduced(
                f"The video's audio is too large to transcribe "
                f"({len(audio_bytes) // (1024 * 1024)} MB, limit {self.max_media_bytes // (1024 * 1024)} MB)."
            )

        extension = os.path.splitext(filename)[1].lower()
        mime_type = AUDIO_MIME_TYPES.get(extension) or mimetypes.guess_type(filename)[0] or DEFAULT_AUDIO_MIME
        transcript = await self.llm.generate_from_media(
            audio_bytes, mime_type, TRANSCRIPTION_INSTRUCTION, filename=filename
        )
        if not transcript:
            raise NoTranscriptProduced("Could not generate a transcript from the video's audio.")
        return transcript

    def _download_audio(self, video_id: str) -> tuple[bytes, str]:
        """Download the smallest audio stream with yt-dlp (blocking)."""
        video_url = f"https://www.youtube.com/watch?v={video_id}"

        with tempfile.TemporaryDirectory() as temp_dir:
            ydl_opts = {
                'format': AUDIO_FORMAT,
                'outtmpl': os.path.join(temp_dir, 'audio.%(ext)s'),
                'quiet': True,
                'no_warnings': True,
                'noplaylist': True,
            }

            with YoutubeDL(ydl_opts) as ydl:
                ydl.extract_info(video_url, download=True)

            audio_files = [f for f in os.listdir(temp_dir) if f.startswith('audio')]
            if not audio_files:
                raise NoTranscriptProduced("Could not download the video's audio.")

            audio_path = os.path.join(temp_dir, audio_files[0])
            logger.info(f"⬇️ Downloaded audio for {video_id}: {os.path.getsize(audio_path)} bytes")
            with open(audio_path, 'rb') as f:
                return f.read(), audio_files[0]
