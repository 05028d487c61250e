from enum import Enum
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator
from typing import Dict, List, Literal, Optional, Union

AnswerMap = Dict[int, int]

class QuizPhase(str, Enum):
    LOADING = "loading"
    AWAITING_RESUME_CHOICE = "awaiting_resume_choice"
    IN_PROGRESS = "in_progress"
    CONFIRMING_SUBMIT = "confirming_submit"
    COMPLETED = "completed"

class ContentKind(str, Enum):
    VIDEO = "video"
    DOCUMENT = "document"

class MediaProvider(str, Enum):
    YOUTUBE = "youtube"
    DRIVE = "drive"
    DIRECT = "direct"
    UNRESOLVED = "unresolved"

class ContentVariant(str, Enum):
    NOTES_IMAGE = "notes_image"
    NOTES_HTML = "notes_html"
    MCQ = "mcq"
    VIDEO = "video"
    DOCUMENT = "document"
    MARKDOWN = "markdown"

class Question(BaseModel):
    """One multiple-choice item. `index` is its position in the original pool."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    index: Optional[int] = None
    text: str = Field(..., validation_alias=AliasChoices("text", "question"))
    options: List[str] = Field(..., min_length=2)
    correct_option_index: int = Field(..., ge=0, validation_alias=AliasChoices("correct_option_index", "correctAnswer"))
    explanation: str = ""

    @model_validator(mode="after")
    def validate_correct_option(self):
        if self.correct_option_index >= len(self.options):
            raise ValueError("correct_option_index must address one of the options")
        return self

class PersistedSnapshot(BaseModel):
    order: List[int]
    answers: AnswerMap = Field(default_factory=dict)
    batch_index: int = Field(default=0, ge=0)

class SessionState(BaseModel):
    phase: QuizPhase
    order: List[int]
    answers: AnswerMap
    batch_index: int
    elapsed_seconds: int

class QuizResult(BaseModel):
    score: int
    answers: AnswerMap
    ordered_questions: List[Question]
    elapsed_seconds: int

class QuestionView(BaseModel):
    number: int
    pool_index: int
    text: str
    options: List[str]
    selected_option: Optional[int] = None
    correct_option: Optional[int] = None
    is_correct: Optional[bool] = None
    explanation: Optional[str] = None

class EntitlementRequest(BaseModel):
    learner_plan: Optional[str] = None
    content_kind: ContentKind
    is_premium: bool = False

class EntitlementResponse(BaseModel):
    allowed: bool

class ProtectionZone(BaseModel):
    """Rectangle the host lays over an embedded frame, anchored to one corner."""
    anchor: Literal["top_left", "top_right", "bottom_left", "bottom_right"]
    width: Union[int, Literal["full"]]
    height: Union[int, Literal["full"]]
    blocks_interaction: bool = True
    action: Literal["none", "external_link"] = "none"
    href: Optional[str] = None
    layer: int = 0

class ResolvedMedia(BaseModel):
    provider: MediaProvider
    source_url: str
    canonical_id: Optional[str] = None
    embed_url: Optional[str] = None
    download_url: Optional[str] = None
    protection_zones: List[ProtectionZone] = Field(default_factory=list)

class ResolveMediaRequest(BaseModel):
    url: str
    learner_plan: Optional[str] = None
    content_kind: ContentKind = ContentKind.VIDEO
    is_premium: bool = False

class PlaylistEntry(BaseModel):
    title: str
    url: str

class Learner(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    subscription_plan: Optional[str] = Field(None, validation_alias=AliasChoices("subscription_plan", "subscriptionPlan"))

class LessonContent(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: str
    title: str = ""
    subtitle: Optional[str] = None
    content: str = ""
    ai_html_content: Optional[str] = Field(None, validation_alias=AliasChoices("ai_html_content", "aiHtmlContent"))
    tags: List[str] = Field(default_factory=list)
    video_playlist: List[PlaylistEntry] = Field(default_factory=list, validation_alias=AliasChoices("video_playlist", "videoPlaylist"))
    mcq_data: Optional[List[Question]] = Field(None, validation_alias=AliasChoices("mcq_data", "mcqData"))
    user_answers: Optional[AnswerMap] = Field(None, validation_alias=AliasChoices("user_answers", "userAnswers"))

class PlaylistItemView(BaseModel):
    title: str
    media: ResolvedMedia

class ContentView(BaseModel):
    variant: ContentVariant
    title: str
    subtitle: Optional[str] = None
    body: Optional[str] = None
    image_url: Optional[str] = None
    is_premium: bool = False
    download_allowed: bool = False
    media: List[PlaylistItemView] = Field(default_factory=list)
    question_count: Optional[int] = None
    has_review_answers: bool = False

class ContentViewRequest(BaseModel):
    content: LessonContent
    chapter_title: str
    learner: Optional[Learner] = None

class CreateSessionRequest(BaseModel):
    chapter_id: str = Field(..., min_length=1, pattern=r"^[a-zA-Z0-9_-]+$")
    questions: List[Question] = Field(..., min_length=1)
    review_answers: Optional[AnswerMap] = None

class AnswerRequest(BaseModel):
    pool_index: int
    option_index: int

class SessionStateResponse(BaseModel):
    session_id: str
    chapter_id: str
    phase: QuizPhase
    order: List[int]
    answers: AnswerMap
    batch_index: int
    batch_count: int
    batch_size: int
    elapsed_seconds: int
    attempted_count: int
    total_questions: int
    can_submit: bool
    score: Optional[int] = None
    has_unsubmitted_answers: bool
    batch: List[QuestionView]

class OperationResponse(BaseModel):
    accepted: bool
    state: SessionStateResponse
    result: Optional[QuizResult] = None

class CapabilityNoticeRequest(BaseModel):
    capability: str
    detail: Optional[str] = None

class HostNotice(BaseModel):
    level: Literal["info", "error"]
    code: str
    message: str
