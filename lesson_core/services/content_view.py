from typing import Callable, Dict, Optional
from ..models import ContentKind, ContentVariant, ContentView, Learner, LessonContent, MediaProvider, PlaylistEntry, PlaylistItemView
from .entitlement import can_download
from .media_resolver import MediaResolver

RAW_TYPE_VARIANTS: Dict[str, ContentVariant] = {
    "NOTES_IMAGE_AI": ContentVariant.NOTES_IMAGE,
    "MCQ_ANALYSIS": ContentVariant.MCQ,
    "MCQ_SIMPLE": ContentVariant.MCQ,
    "VIDEO_LECTURE": ContentVariant.VIDEO,
    "PDF_VIEWER": ContentVariant.DOCUMENT,
    "PDF_FREE": ContentVariant.DOCUMENT,
    "PDF_PREMIUM": ContentVariant.DOCUMENT,
    "NOTES_HTML_FREE": ContentVariant.NOTES_HTML,
    "NOTES_HTML_PREMIUM": ContentVariant.NOTES_HTML,
}

def _is_streamed_video(url: str) -> bool:
    lowered = url.strip().lower()
    return "youtube.com" in lowered or "youtu.be" in lowered or lowered.split("?")[0].endswith(".mp4")

def classify(content: LessonContent) -> ContentVariant:
    variant = RAW_TYPE_VARIANTS.get(content.type.upper(), ContentVariant.MARKDOWN)
    if content.type.upper() == "PDF_VIEWER" and (content.video_playlist or _is_streamed_video(content.content)):
        return ContentVariant.VIDEO
    if variant == ContentVariant.MCQ and not content.mcq_data:
        return ContentVariant.MARKDOWN
    return variant

class ContentViewBuilder:
    def __init__(self, resolver: MediaResolver, premium_tag: str = "ultra") -> None:
        self.resolver = resolver
        self.premium_tag = premium_tag.lower()
        self._builders: Dict[ContentVariant, Callable[[LessonContent, str, Optional[str]], ContentView]] = {
            ContentVariant.NOTES_IMAGE: self._notes_image,
            ContentVariant.NOTES_HTML: self._notes_html,
            ContentVariant.MCQ: self._mcq,
            ContentVariant.VIDEO: self._video,
            ContentVariant.DOCUMENT: self._document,
            ContentVariant.MARKDOWN: self._markdown,
        }

    @property
    def variants(self) -> set:
        return set(self._builders)

    def build(self, content: LessonContent, chapter_title: str, learner: Optional[Learner] = None) -> ContentView:
        plan = learner.subscription_plan if learner else None
        return self._builders[classify(content)](content, chapter_title, plan)

    def is_premium(self, content: LessonContent) -> bool:
        if self.premium_tag in content.title.lower():
            return True
        return any(tag.lower() == self.premium_tag for tag in content.tags)

    def _notes_image(self, content: LessonContent, chapter_title: str, plan: Optional[str]) -> ContentView:
        if content.ai_html_content:
            return ContentView(variant=ContentVariant.NOTES_IMAGE, title=content.title, body=content.ai_html_content)
        return ContentView(variant=ContentVariant.NOTES_IMAGE, title=content.title, image_url=content.content)

    def _notes_html(self, content: LessonContent, chapter_title: str, plan: Optional[str]) -> ContentView:
        subtitle = "Premium Notes" if content.type.upper() == "NOTES_HTML_PREMIUM" else "Free Notes"
        return ContentView(variant=ContentVariant.NOTES_HTML, title=chapter_title, subtitle=subtitle, body=content.content)

    def _mcq(self, content: LessonContent, chapter_title: str, plan: Optional[str]) -> ContentView:
        return ContentView(
            variant=ContentVariant.MCQ,
            title=chapter_title,
            question_count=len(content.mcq_data or []),
            has_review_answers=content.user_answers is not None,
        )

    def _video(self, content: LessonContent, chapter_title: str, plan: Optional[str]) -> ContentView:
        premium = self.is_premium(content)
        allowed = can_download(plan, ContentKind.VIDEO, premium)
        playlist = content.video_playlist or [PlaylistEntry(title=chapter_title, url=content.content)]
        items = [
            PlaylistItemView(title=entry.title, media=self.resolver.resolve(entry.url, download_allowed=allowed))
            for entry in playlist
        ]
        return ContentView(
            variant=ContentVariant.VIDEO,
            title=chapter_title,
            is_premium=premium,
            download_allowed=allowed,
            media=items,
        )

    def _document(self, content: LessonContent, chapter_title: str, plan: Optional[str]) -> ContentView:
        allowed = can_download(plan, ContentKind.DOCUMENT)
        media = self.resolver.resolve(content.content, download_allowed=allowed)
        if media.provider == MediaProvider.YOUTUBE:
            # Streamed video never carries a download target, whatever the content type says.
            allowed = False
        return ContentView(
            variant=ContentVariant.DOCUMENT,
            title=chapter_title,
            download_allowed=allowed,
            media=[PlaylistItemView(title=chapter_title, media=media)],
        )

    def _markdown(self, content: LessonContent, chapter_title: str, plan: Optional[str]) -> ContentView:
        return ContentView(
            variant=ContentVariant.MARKDOWN,
            title=chapter_title,
            subtitle=content.subtitle or "Study Material",
            body=content.content,
        )
