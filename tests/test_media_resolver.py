import pytest

from lesson_core.models import MediaProvider
from lesson_core.services.media_resolver import MediaResolver

DRIVE_ID = "1AbCdEfGhIjKlMnOpQrStUvWxYz0123"  # 31 chars
VIDEO_ID = "dQw4w9WgXcQ"


@pytest.fixture
def resolver():
    return MediaResolver(branding_url="https://example.com/channel")


@pytest.mark.parametrize(
    "url",
    [
        f"https://drive.google.com/file/d/{DRIVE_ID}/view?usp=sharing",
        f"https://drive.google.com/open?id={DRIVE_ID}",
        f"https://drive.google.com/file/d/{DRIVE_ID}/edit",
        f"drive.google.com/uc?id={DRIVE_ID}",
    ],
)
def test_drive_variants_resolve_to_preview(resolver, url):
    media = resolver.resolve(url)
    assert media.provider == MediaProvider.DRIVE
    assert media.canonical_id == DRIVE_ID
    assert media.embed_url == f"https://drive.google.com/file/d/{DRIVE_ID}/preview"
    assert media.download_url is None


def test_thirty_character_drive_token(resolver):
    token = "a" * 10 + "B" * 10 + "-" * 2 + "_" * 2 + "9" * 6
    assert len(token) == 30
    media = resolver.resolve(f"https://drive.google.com/file/d/{token}/view")
    assert media.embed_url == f"https://drive.google.com/file/d/{token}/preview"


def test_drive_download_only_when_entitled(resolver):
    url = f"https://drive.google.com/file/d/{DRIVE_ID}/view"
    media = resolver.resolve(url, download_allowed=True)
    assert media.download_url == f"https://drive.google.com/u/0/uc?id={DRIVE_ID}&export=download"


def test_drive_without_id_is_unresolved(resolver):
    media = resolver.resolve("https://drive.google.com/drive/my-drive")
    assert media.provider == MediaProvider.UNRESOLVED
    assert media.embed_url is None


def test_drive_zone_blocks_popout(resolver):
    zones = resolver.resolve(f"https://drive.google.com/file/d/{DRIVE_ID}/view").protection_zones
    assert len(zones) == 1
    assert zones[0].anchor == "top_right"
    assert zones[0].blocks_interaction is True


@pytest.mark.parametrize(
    "url",
    [
        f"https://www.youtube.com/watch?v={VIDEO_ID}",
        f"https://youtu.be/{VIDEO_ID}",
        f"https://www.youtube.com/embed/{VIDEO_ID}",
        f"https://www.youtube.com/v/{VIDEO_ID}",
        f"https://m.youtube.com/watch?feature=share&v={VIDEO_ID}&t=42",
        f"https://www.youtube.com/ytscreeningroom?v={VIDEO_ID}",
        f"https://youtu.be/{VIDEO_ID}?si=abcdef",
    ],
)
def test_youtube_shapes_normalise_to_same_embed(resolver, url):
    media = resolver.resolve(url)
    assert media.provider == MediaProvider.YOUTUBE
    assert media.canonical_id == VIDEO_ID
    assert media.embed_url == resolver.resolve(f"https://youtu.be/{VIDEO_ID}").embed_url


def test_youtube_embed_parameters(resolver):
    embed = resolver.resolve(f"https://youtu.be/{VIDEO_ID}").embed_url
    assert embed.startswith(f"https://www.youtube.com/embed/{VIDEO_ID}?")
    for param in ("autoplay=1", "rel=0", "modestbranding=1", "disablekb=1", "iv_load_policy=3", "showinfo=0"):
        assert param in embed


def test_youtube_never_offers_download(resolver):
    media = resolver.resolve(f"https://youtu.be/{VIDEO_ID}", download_allowed=True)
    assert media.download_url is None


def test_youtube_zones(resolver):
    zones = resolver.resolve(f"https://youtu.be/{VIDEO_ID}").protection_zones
    anchors = {z.anchor: z for z in zones}
    assert anchors["top_right"].blocks_interaction is True
    logo = anchors["bottom_right"]
    assert logo.action == "external_link"
    assert logo.href == "https://example.com/channel"
    assert logo.layer > anchors["bottom_left"].layer
    assert anchors["bottom_left"].width == "full"


def test_youtube_logo_zone_blocks_without_branding_url():
    zones = MediaResolver().resolve(f"https://youtu.be/{VIDEO_ID}").protection_zones
    logo = next(z for z in zones if z.anchor == "bottom_right")
    assert logo.action == "none"
    assert logo.blocks_interaction is True


@pytest.mark.parametrize(
    "url",
    [
        "https://www.youtube.com/watch?v=short",
        "https://www.youtube.com/channel/UC123",
        "",
        "   ",
        "not a url",
        "ftp://files.example.com/notes.pdf",
        "http://[::1",
    ],
)
def test_unextractable_references_are_unresolved(resolver, url):
    media = resolver.resolve(url)
    assert media.provider == MediaProvider.UNRESOLVED
    assert media.embed_url is None
    assert media.download_url is None


def test_direct_document_passes_through(resolver):
    url = "https://cdn.example.com/notes/Chapter-1.PDF?sig=abc"
    media = resolver.resolve(url, download_allowed=True)
    assert media.provider == MediaProvider.DIRECT
    assert media.embed_url == url
    assert media.download_url == url


def test_direct_document_without_entitlement(resolver):
    media = resolver.resolve("https://cdn.example.com/notes.pdf")
    assert media.download_url is None
    assert media.embed_url == "https://cdn.example.com/notes.pdf"


def test_trusted_document_domain(resolver):
    url = "https://docs.google.com/document/d/abc/view"
    media = resolver.resolve(url)
    assert media.provider == MediaProvider.DIRECT
    assert media.embed_url == url


def test_external_page_is_link_only(resolver):
    media = resolver.resolve("https://example.com/lesson", download_allowed=True)
    assert media.provider == MediaProvider.DIRECT
    assert media.embed_url is None
    assert media.download_url is None
    assert media.source_url == "https://example.com/lesson"
