"""Pydantic schemas for API request/response validation.

JSON bodies use camelCase (`chapterNumber`, `totalPages`); snake_case names
are accepted on input as well.
"""

from datetime import datetime
from typing import Annotated, ClassVar, Generic, TypeVar

from pydantic import (
    AfterValidator, BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator,
)
from pydantic.alias_generators import to_camel

from fansite.db.models import (
    AnnotationOwnerType, EventType, MediaOwnerType, MediaType,
    ModerationStatus, SpoilerCategory, SpoilerLevel, UserRole,
)

T = TypeVar("T")

# Addresses are stored and compared lowercased
Email = Annotated[EmailStr, AfterValidator(lambda v: v.lower())]


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class PartialUpdate(CamelModel):
    """Update body: omitted fields are left alone.

    `required_fields` back NOT NULL columns, so an explicit null for one of
    them is a validation error instead of a write.
    """
    required_fields: ClassVar[tuple[str, ...]] = ()

    @model_validator(mode="after")
    def reject_null_required(self):
        nulls = [
            name for name in self.required_fields
            if name in self.model_fields_set and getattr(self, name) is None
        ]
        if nulls:
            raise ValueError(f"{', '.join(to_camel(n) for n in nulls)} cannot be null")
        return self


class Page(CamelModel, Generic[T]):
    """Paginated list response."""
    data: list[T]
    total: int
    page: int
    per_page: int
    total_pages: int


class MessageResponse(CamelModel):
    message: str


# ============ User Schemas ============

class UserSummary(CamelModel):
    id: int
    username: str


class UserPublic(CamelModel):
    id: int
    username: str
    role: str
    custom_role: str | None = None
    user_progress: int = 0
    created_at: datetime | None = None


class UserSelf(UserPublic):
    """The caller's own account, including private settings."""
    email: str
    is_email_verified: bool
    show_all_spoilers: bool = False
    chapter_tolerance: int = 0



class RegisterRequest(CamelModel):
    username: str = Field(min_length=3, max_length=50)
    email: Email
    password: str = Field(min_length=8, max_length=128)

    @field_validator("username")
    @classmethod
    def strip_username(cls, v: str) -> str:
        return v.strip()


class RegisterResponse(CamelModel):
    message: str
    user: UserSelf
    verification_token: str | None = None  # only for test-domain addresses


class LoginRequest(CamelModel):
    username: str = Field(min_length=1, description="Username or email")
    password: str = Field(min_length=1)


class RefreshRequest(CamelModel):
    refresh_token: str


class TokenResponse(CamelModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    user: UserSelf


class PasswordResetRequest(CamelModel):
    email: Email


class PasswordResetRequestResponse(CamelModel):
    message: str
    reset_token: str | None = None  # only for test-domain addresses


class PasswordResetConfirm(CamelModel):
    token: str
    new_password: str = Field(min_length=8, max_length=128)


class ProfileUpdate(PartialUpdate):
    required_fields = ("show_all_spoilers", "chapter_tolerance")

    custom_role: str | None = Field(default=None, max_length=50)
    show_all_spoilers: bool | None = None
    chapter_tolerance: int | None = Field(default=None, ge=0)


class ProgressUpdate(CamelModel):
    user_progress: int = Field(ge=0)


class ProgressResponse(CamelModel):
    user_progress: int


class AdminUserCreate(RegisterRequest):
    role: UserRole = UserRole.USER
    is_email_verified: bool = True


class AdminUserUpdate(PartialUpdate):
    required_fields = ("username", "email", "role", "is_email_verified", "user_progress")

    username: str | None = Field(default=None, min_length=3, max_length=50)
    email: Email | None = None
    role: UserRole | None = None
    is_email_verified: bool | None = None
    user_progress: int | None = Field(default=None, ge=0)
    custom_role: str | None = Field(default=None, max_length=50)


class UserStats(CamelModel):
    total_users: int
    verified_users: int
    moderators: int
    admins: int
    users_by_role: dict[str, int]


class SubmissionCounts(CamelModel):
    guides: int = 0
    events: int = 0
    media: int = 0
    annotations: int = 0


# ============ Badge Schemas ============

class BadgeResponse(CamelModel):
    id: int
    name: str
    description: str | None = None
    type: str
    icon: str
    color: str
    background_color: str | None = None
    display_order: int
    is_active: bool
    is_manually_awardable: bool


class UserBadgeResponse(CamelModel):
    id: int
    user_id: int
    badge: BadgeResponse
    awarded_at: datetime
    expires_at: datetime | None = None
    year: int | None = None
    reason: str | None = None
    is_active: bool


class AwardBadgeRequest(CamelModel):
    user_id: int
    badge_id: int
    reason: str | None = None
    year: int | None = None
    expires_at: datetime | None = None


class ExpireBadgesResponse(CamelModel):
    expired_count: int


class PublicUserProfile(UserPublic):
    badges: list[UserBadgeResponse] = []
    submissions: SubmissionCounts


# ============ Series / Arc / Volume / Chapter ============

class SeriesCreate(CamelModel):
    name: str = Field(max_length=200)
    order: int = 0
    description: str | None = None


class SeriesUpdate(PartialUpdate):
    required_fields = ("name", "order")

    name: str | None = Field(default=None, max_length=200)
    order: int | None = None
    description: str | None = None


class SeriesResponse(CamelModel):
    id: int
    name: str
    order: int
    description: str | None = None


class ArcSummary(CamelModel):
    id: int
    name: str
    order: int


class ArcCreate(CamelModel):
    name: str = Field(min_length=1, max_length=100)
    order: int = 0
    description: str | None = None
    start_chapter: int | None = Field(default=None, ge=1)
    end_chapter: int | None = Field(default=None, ge=1)
    image_url: str | None = Field(default=None, max_length=500)
    series_id: int | None = None


class ArcUpdate(PartialUpdate):
    required_fields = ("name", "order")

    name: str | None = Field(default=None, min_length=1, max_length=100)
    order: int | None = None
    description: str | None = None
    start_chapter: int | None = Field(default=None, ge=1)
    end_chapter: int | None = Field(default=None, ge=1)
    image_url: str | None = Field(default=None, max_length=500)
    series_id: int | None = None


class ArcResponse(ArcSummary):
    description: str | None = None
    start_chapter: int | None = None
    end_chapter: int | None = None
    image_url: str | None = None
    series_id: int | None = None


class VolumeCreate(CamelModel):
    number: int = Field(ge=1)
    start_chapter: int = Field(ge=1)
    end_chapter: int = Field(ge=1)
    description: str | None = None
    cover_url: str | None = Field(default=None, max_length=500)


class VolumeUpdate(PartialUpdate):
    required_fields = ("number", "start_chapter", "end_chapter")

    number: int | None = Field(default=None, ge=1)
    start_chapter: int | None = Field(default=None, ge=1)
    end_chapter: int | None = Field(default=None, ge=1)
    description: str | None = None
    cover_url: str | None = Field(default=None, max_length=500)


class VolumeResponse(CamelModel):
    id: int
    number: int
    start_chapter: int
    end_chapter: int
    description: str | None = None
    cover_url: str | None = None


class ChapterCreate(CamelModel):
    number: int = Field(ge=1)
    title: str | None = Field(default=None, max_length=200)
    summary: str | None = None


class ChapterUpdate(PartialUpdate):
    required_fields = ("number",)

    number: int | None = Field(default=None, ge=1)
    title: str | None = Field(default=None, max_length=200)
    summary: str | None = None


class ChapterSummary(CamelModel):
    id: int
    number: int
    title: str | None = None


class ChapterResponse(ChapterSummary):
    summary: str | None = None
    volume: VolumeResponse | None = None


# ============ Characters / Organizations ============

class CharacterSummary(CamelModel):
    id: int
    name: str
    image_url: str | None = None


class CharacterCreate(CamelModel):
    name: str = Field(min_length=1, max_length=100)
    alternate_names: list[str] | None = None
    description: str | None = None
    first_appearance_chapter: int | None = Field(default=None, ge=1)
    occupation: str | None = Field(default=None, max_length=200)
    notable_roles: list[str] | None = None
    image_url: str | None = Field(default=None, max_length=500)


class CharacterUpdate(PartialUpdate):
    required_fields = ("name",)

    name: str | None = Field(default=None, min_length=1, max_length=100)
    alternate_names: list[str] | None = None
    description: str | None = None
    first_appearance_chapter: int | None = Field(default=None, ge=1)
    occupation: str | None = Field(default=None, max_length=200)
    notable_roles: list[str] | None = None
    image_url: str | None = Field(default=None, max_length=500)


class CharacterResponse(CharacterSummary):
    alternate_names: list[str] | None = None
    description: str | None = None
    first_appearance_chapter: int | None = None
    occupation: str | None = None
    notable_roles: list[str] | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class OrganizationCreate(CamelModel):
    name: str = Field(min_length=1, max_length=200)
    description: str | None = None


class OrganizationUpdate(PartialUpdate):
    required_fields = ("name",)

    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None


class OrganizationResponse(CamelModel):
    id: int
    name: str
    description: str | None = None


class MembershipCreate(CamelModel):
    character_id: int
    role: str = Field(min_length=1, max_length=100)
    start_chapter: int = Field(ge=1)
    end_chapter: int | None = Field(default=None, ge=1)
    spoiler_chapter: int = Field(ge=1)
    notes: str | None = None


class MembershipResponse(CamelModel):
    id: int
    character: CharacterSummary
    role: str
    start_chapter: int
    end_chapter: int | None = None
    spoiler_chapter: int
    notes: str | None = None


class OrganizationDetail(OrganizationResponse):
    members: list[MembershipResponse] = []


# ============ Tags / Gambles / Quotes ============

class TagCreate(CamelModel):
    name: str = Field(min_length=1, max_length=50)
    description: str | None = None


class TagUpdate(PartialUpdate):
    required_fields = ("name",)

    name: str | None = Field(default=None, min_length=1, max_length=50)
    description: str | None = None


class TagResponse(CamelModel):
    id: int
    name: str
    description: str | None = None


class GambleSummary(CamelModel):
    id: int
    name: str
    chapter_number: int | None = None


class GambleCreate(CamelModel):
    name: str = Field(min_length=1, max_length=200)
    description: str | None = None
    rules: str | None = None
    win_condition: str | None = None
    chapter_number: int | None = Field(default=None, ge=1)
    participant_ids: list[int] = []


class GambleUpdate(PartialUpdate):
    required_fields = ("name",)

    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    rules: str | None = None
    win_condition: str | None = None
    chapter_number: int | None = Field(default=None, ge=1)
    participant_ids: list[int] | None = None


class GambleResponse(GambleSummary):
    description: str | None = None
    rules: str | None = None
    win_condition: str | None = None
    participants: list[CharacterSummary] = []
    created_at: datetime | None = None
    updated_at: datetime | None = None


class QuoteCreate(CamelModel):
    text: str = Field(min_length=1)
    chapter_number: int = Field(ge=1)
    description: str | None = None
    page_number: int | None = Field(default=None, ge=1)
    character_id: int


class QuoteUpdate(PartialUpdate):
    required_fields = ("text", "chapter_number", "character_id")

    text: str | None = Field(default=None, min_length=1)
    chapter_number: int | None = Field(default=None, ge=1)
    description: str | None = None
    page_number: int | None = Field(default=None, ge=1)
    character_id: int | None = None


class QuoteResponse(CamelModel):
    id: int
    text: str
    chapter_number: int
    description: str | None = None
    page_number: int | None = None
    character: CharacterSummary
    submitted_by_id: int | None = None
    created_at: datetime | None = None


# ============ Events ============

class EventCreate(CamelModel):
    title: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1)
    type: EventType = EventType.DECISION
    chapter_number: int = Field(default=1, ge=1)
    spoiler_chapter: int | None = Field(default=None, ge=1)
    page_numbers: list[int] | None = None
    arc_id: int | None = None
    gamble_id: int | None = None
    character_ids: list[int] = []
    tag_ids: list[int] = []


class EventOwnUpdate(PartialUpdate):
    """Fields an author may change on their own pending/rejected submission."""
    required_fields = ("title", "description", "type", "chapter_number")

    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, min_length=1)
    type: EventType | None = None
    chapter_number: int | None = Field(default=None, ge=1)
    spoiler_chapter: int | None = Field(default=None, ge=1)
    page_numbers: list[int] | None = None
    arc_id: int | None = None
    gamble_id: int | None = None
    character_ids: list[int] | None = None
    tag_ids: list[int] | None = None


class EventUpdate(EventOwnUpdate):
    required_fields = EventOwnUpdate.required_fields + ("status", "is_verified")

    status: ModerationStatus | None = None
    is_verified: bool | None = None


class RejectRequest(CamelModel):
    reason: str | None = Field(default=None, max_length=500)


class EventResponse(CamelModel):
    id: int
    title: str
    description: str
    type: str
    status: str
    chapter_number: int
    spoiler_chapter: int | None = None
    page_numbers: list[int] | None = None
    is_verified: bool
    rejection_reason: str | None = None
    arc: ArcSummary | None = None
    gamble: GambleSummary | None = None
    characters: list[CharacterSummary] = []
    tags: list[TagResponse] = []
    created_by_id: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ArcEventGroup(CamelModel):
    arc: ArcSummary
    events: list[EventResponse]


class EventsGroupedByArc(CamelModel):
    arcs: list[ArcEventGroup]
    no_arc: list[EventResponse]


class EventVisibility(CamelModel):
    event_id: int
    chapter_number: int
    effective_progress: int
    hidden: bool
    label: str | None = None


# ============ Timeline ============

class TimelineEventOut(CamelModel):
    id: int
    title: str
    description: str | None = None
    chapter_number: int
    type: str | None = None
    type_label: str
    color: str
    characters: list[str] = []
    is_spoiler: bool = False
    spoiler_label: str | None = None


class TimelineSectionOut(CamelModel):
    section_type: str
    section_name: str
    earliest_chapter: int
    latest_chapter: int
    events: list[TimelineEventOut]


class ArcTimelineResponse(CamelModel):
    arc: ArcSummary
    total_events: int
    sections: list[TimelineSectionOut]


# ============ Chapter spoilers ============

class ChapterSpoilerCreate(CamelModel):
    event_id: int
    chapter_id: int
    level: SpoilerLevel = SpoilerLevel.REVEAL
    category: SpoilerCategory = SpoilerCategory.PLOT
    description: str = Field(min_length=1)
    minimum_chapter: int = Field(ge=1)
    requirement_explanation: str | None = None
    additional_requirement_ids: list[int] = []
    affected_character_ids: list[int] = []


class ChapterSpoilerUpdate(PartialUpdate):
    required_fields = ("level", "category", "description", "minimum_chapter")

    level: SpoilerLevel | None = None
    category: SpoilerCategory | None = None
    description: str | None = Field(default=None, min_length=1)
    minimum_chapter: int | None = Field(default=None, ge=1)
    requirement_explanation: str | None = None
    additional_requirement_ids: list[int] | None = None
    affected_character_ids: list[int] | None = None


class ChapterSpoilerResponse(CamelModel):
    id: int
    event_id: int
    chapter_id: int
    level: str
    category: str
    description: str
    is_verified: bool
    minimum_chapter: int
    requirement_explanation: str | None = None
    additional_requirements: list[ChapterSummary] = []
    affected_characters: list[CharacterSummary] = []
    created_at: datetime | None = None


class CheckViewableRequest(CamelModel):
    spoiler_id: int
    read_chapter_ids: list[int] = []


class CheckViewableResponse(CamelModel):
    can_view: bool


# ============ Guides ============

class GuideCreate(CamelModel):
    title: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1, max_length=1000)
    content: str = Field(min_length=1)
    tag_names: list[str] = []
    character_ids: list[int] = []
    gamble_ids: list[int] = []
    arc_id: int | None = None


class GuideUpdate(PartialUpdate):
    required_fields = ("title", "description", "content")

    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, min_length=1, max_length=1000)
    content: str | None = Field(default=None, min_length=1)
    tag_names: list[str] | None = None
    character_ids: list[int] | None = None
    gamble_ids: list[int] | None = None
    arc_id: int | None = None


class GuideResponse(CamelModel):
    id: int
    title: str
    description: str
    content: str
    status: str
    view_count: int
    like_count: int
    rejection_reason: str | None = None
    author: UserSummary
    arc: ArcSummary | None = None
    tags: list[TagResponse] = []
    characters: list[CharacterSummary] = []
    gambles: list[GambleSummary] = []
    created_at: datetime | None = None
    updated_at: datetime | None = None


class GuideLikeResponse(CamelModel):
    liked: bool
    like_count: int


# ============ Annotations ============

class AnnotationCreate(CamelModel):
    owner_type: AnnotationOwnerType
    owner_id: int
    title: str = Field(min_length=1, max_length=200)
    content: str = Field(min_length=1)
    source_url: str | None = Field(default=None, max_length=500)
    chapter_reference: int | None = Field(default=None, ge=1)
    is_spoiler: bool = False
    spoiler_chapter: int | None = Field(default=None, ge=1)


class AnnotationUpdate(PartialUpdate):
    required_fields = ("title", "content", "is_spoiler")

    title: str | None = Field(default=None, min_length=1, max_length=200)
    content: str | None = Field(default=None, min_length=1)
    source_url: str | None = Field(default=None, max_length=500)
    chapter_reference: int | None = Field(default=None, ge=1)
    is_spoiler: bool | None = None
    spoiler_chapter: int | None = Field(default=None, ge=1)


class AnnotationResponse(CamelModel):
    id: int
    owner_type: str
    owner_id: int
    title: str
    content: str
    source_url: str | None = None
    chapter_reference: int | None = None
    is_spoiler: bool
    spoiler_chapter: int | None = None
    status: str
    rejection_reason: str | None = None
    author: UserSummary
    created_at: datetime | None = None
    updated_at: datetime | None = None


# ============ Media ============

class MediaCreate(CamelModel):
    url: str = Field(min_length=1, max_length=2000)
    type: MediaType
    description: str | None = Field(default=None, max_length=500)
    owner_type: MediaOwnerType
    owner_id: int
    chapter_number: int | None = Field(default=None, ge=1)


class MediaResponse(CamelModel):
    id: int
    url: str
    type: str
    description: str | None = None
    owner_type: str
    owner_id: int
    chapter_number: int | None = None
    status: str
    rejection_reason: str | None = None
    submitted_by_id: int | None = None
    created_at: datetime | None = None


class UserSubmissions(CamelModel):
    guides: list[GuideResponse]
    events: list[EventResponse]
    media: list[MediaResponse]
    annotations: list[AnnotationResponse]


# ============ Search / Stats ============

class SearchResult(CamelModel):
    id: int
    type: str
    title: str
    description: str | None = None
    chapter_number: int | None = None


class ContentType(CamelModel):
    type: str
    label: str


class StatsResponse(CamelModel):
    characters: int
    arcs: int
    chapters: int
    volumes: int
    events: int
    gambles: int
    organizations: int
    guides: int
    quotes: int
    users: int

