"""Утилиты для преобразования моделей в схемы Pydantic."""
from typing import List

from models.match import Match
from models.preference_tag import UserPreferenceTag
from models.user import User
from schemas.discovery import CandidateRead
from schemas.match import MatchListItem, MatchRead
from schemas.message import ConversationRead, LastMessageRead
from schemas.tag import TagRead, UserTagRead
from schemas.user import BlockedUserRead, PartnerRead
from services.discovery import DiscoveryCandidate
from services.matches import MatchOverview
from services.messages import Conversation
from services.scoring import as_percentage


def to_partner_read(user: User) -> PartnerRead:
    """Публичная часть профиля собеседника."""
    return PartnerRead(
        user_id=user.id,
        username=user.username,
        display_name=user.display_name,
        age=user.age,
        pronouns=user.pronouns,
        bio=user.bio,
        location_city=user.location_city,
        location_state=user.location_state,
        last_active=user.last_active,
    )


def to_blocked_user_read(user: User) -> BlockedUserRead:
    return BlockedUserRead(user_id=user.id, username=user.username, display_name=user.display_name)


def to_candidate_read(candidate: DiscoveryCandidate) -> CandidateRead:
    return CandidateRead(
        user=to_partner_read(candidate.user),
        compatibility_score=candidate.compatibility_percentage,
        shared_tag_ids=sorted(candidate.shared_tag_ids),
        matched_codes_count=len(candidate.shared_tag_ids),
    )


def to_match_read(match: Match) -> MatchRead:
    shared = list(match.shared_tag_ids or [])
    return MatchRead(
        id=match.id,
        status=match.status,
        compatibility_score=as_percentage(match.compatibility_score),
        shared_tag_ids=shared,
        matched_codes_count=len(shared),
        created_at=match.created_at,
        updated_at=match.updated_at,
    )


def to_match_list_item(overview: MatchOverview) -> MatchListItem:
    base = to_match_read(overview.match)
    return MatchListItem(
        **base.model_dump(),
        partner=to_partner_read(overview.partner),
        unread_count=overview.unread_count,
        last_message_at=overview.last_message_at,
    )


def to_conversation_read(conv: Conversation, user_id: int) -> ConversationRead:
    last = conv.last_message
    return ConversationRead(
        match_id=conv.match.id,
        partner=to_partner_read(conv.partner),
        last_message=LastMessageRead(
            content=last.content if last else None,
            sent_at=last.created_at if last else None,
            sent_by_me=bool(last and last.sender_id == user_id),
        ),
        unread_count=conv.unread_count,
        matched_at=conv.match.created_at,
        compatibility_score=as_percentage(conv.match.compatibility_score),
    )


def to_user_tag_read(assignment: UserPreferenceTag) -> UserTagRead:
    return UserTagRead(
        tag=TagRead.model_validate(assignment.tag),
        intensity=assignment.intensity,
        polarity=assignment.polarity,
        added_at=assignment.created_at,
    )


def to_user_tag_reads(assignments: List[UserPreferenceTag]) -> List[UserTagRead]:
    return [to_user_tag_read(a) for a in assignments]
