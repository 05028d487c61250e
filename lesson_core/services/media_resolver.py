import logging
import re
from typing import List, Optional
from urllib.parse import urlencode, urlsplit
from ..models import MediaProvider, ProtectionZone, ResolvedMedia

logger = logging.getLogger("lesson_core")

DRIVE_ID_PATTERN = re.compile(r"[-\w]{25,}", re.ASCII)
YOUTUBE_ID_PATTERN = re.compile(
    r"(?:youtu\.be/|youtube\.com/(?:embed/|v/|watch\?(?:[^#\s]*&)?v=|user/\S+|ytscreeningroom\?v=))([\w-]{11})(?![\w-])",
    re.ASCII,
)

YOUTUBE_EMBED_PARAMS = {
    "autoplay": 1,
    "modestbranding": 1,
    "rel": 0,
    "iv_load_policy": 3,
    "controls": 1,
    "disablekb": 1,
    "showinfo": 0,
    "fs": 0,
    "playsinline": 1,
}

DIRECT_EXTENSIONS = (
    ".pdf", ".doc", ".docx", ".ppt", ".pptx", ".xls", ".xlsx", ".txt", ".epub",
    ".mp4", ".webm", ".m4v", ".mov", ".mp3",
)
TRUSTED_DOCUMENT_HOSTS = ("docs.google.com",)

def _host_matches(host: str, domain: str) -> bool:
    return host == domain or host.endswith("." + domain)

class MediaResolver:
    """Turns raw media references into embeddable, overlay-protected configurations.

    Resolution never raises: anything that cannot be classified comes back with
    provider ``unresolved`` so the host can show a fallback instead of a frame.
    """

    def __init__(self, branding_url: Optional[str] = None) -> None:
        self.branding_url = branding_url

    def resolve(self, url: str, download_allowed: bool = False) -> ResolvedMedia:
        raw = (url or "").strip()
        host = self._host(raw)
        if _host_matches(host, "drive.google.com"):
            return self._resolve_drive(raw, download_allowed)
        if _host_matches(host, "youtube.com") or host == "youtu.be":
            return self._resolve_youtube(raw)
        return self._resolve_direct(raw, download_allowed)

    def _host(self, url: str) -> str:
        candidate = url if "://" in url else "https://" + url
        try:
            return (urlsplit(candidate).hostname or "").lower()
        except ValueError:
            return ""

    def _unresolved(self, url: str, reason: str) -> ResolvedMedia:
        logger.debug({"event": "media_unresolved", "url": url, "reason": reason})
        return ResolvedMedia(provider=MediaProvider.UNRESOLVED, source_url=url)

    def _resolve_drive(self, url: str, download_allowed: bool) -> ResolvedMedia:
        match = DRIVE_ID_PATTERN.search(url)
        if not match:
            return self._unresolved(url, "drive_id_not_found")
        file_id = match.group(0)
        return ResolvedMedia(
            provider=MediaProvider.DRIVE,
            source_url=url,
            canonical_id=file_id,
            embed_url=f"https://drive.google.com/file/d/{file_id}/preview",
            download_url=f"https://drive.google.com/u/0/uc?id={file_id}&export=download" if download_allowed else None,
            protection_zones=self._drive_zones(),
        )

    def _resolve_youtube(self, url: str) -> ResolvedMedia:
        match = YOUTUBE_ID_PATTERN.search(url)
        if not match:
            return self._unresolved(url, "youtube_id_not_found")
        video_id = match.group(1)
        return ResolvedMedia(
            provider=MediaProvider.YOUTUBE,
            source_url=url,
            canonical_id=video_id,
            embed_url=f"https://www.youtube.com/embed/{video_id}?{urlencode(YOUTUBE_EMBED_PARAMS)}",
            protection_zones=self._youtube_zones(),
        )

    def _resolve_direct(self, url: str, download_allowed: bool) -> ResolvedMedia:
        try:
            parts = urlsplit(url)
        except ValueError:
            return self._unresolved(url, "malformed_url")
        if parts.scheme.lower() not in ("http", "https") or not parts.hostname:
            return self._unresolved(url, "unsupported_scheme")
        host = parts.hostname.lower()
        embeddable = parts.path.lower().endswith(DIRECT_EXTENSIONS) or any(
            _host_matches(host, trusted) for trusted in TRUSTED_DOCUMENT_HOSTS
        )
        if not embeddable:
            # External page: the host links out to source_url.
            return ResolvedMedia(provider=MediaProvider.DIRECT, source_url=url)
        return ResolvedMedia(
            provider=MediaProvider.DIRECT,
            source_url=url,
            embed_url=url,
            download_url=url if download_allowed else None,
            protection_zones=[ProtectionZone(anchor="top_right", width=96, height=96, layer=1)],
        )

    def _youtube_zones(self) -> List[ProtectionZone]:
        if self.branding_url:
            logo = ProtectionZone(
                anchor="bottom_right", width=180, height=80,
                blocks_interaction=False, action="external_link", href=self.branding_url, layer=2,
            )
        else:
            logo = ProtectionZone(anchor="bottom_right", width=180, height=80, layer=2)
        return [
            ProtectionZone(anchor="top_right", width=250, height=120, layer=2),
            logo,
            ProtectionZone(anchor="bottom_left", width="full", height=80, layer=1),
        ]

    def _drive_zones(self) -> List[ProtectionZone]:
        return [ProtectionZone(anchor="top_right", width=100, height=80, layer=2)]
