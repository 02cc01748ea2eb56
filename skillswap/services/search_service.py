"""
User discovery: filtered search over public profiles and the availability
filter-selection rules shared with the client.
"""
import logging
import math
from typing import Iterable, List, Optional, Sequence

from sqlalchemy import String, cast, func, or_, select
from sqlalchemy.orm import Session, selectinload

from ..core.exceptions import ValidationError
from ..models import Skill, User, user_skills_offered, user_skills_wanted
from ..schemas.user import AvailabilityDate, AvailabilityTime

logger = logging.getLogger(__name__)

SORT_OPTIONS = ("recent", "skills", "rating", "location")

EVERYDAY = AvailabilityDate.EVERYDAY.value
WEEKDAYS = AvailabilityDate.WEEKDAYS.value
WEEKENDS = AvailabilityDate.WEEKENDS.value


def parse_filter_list(raw: Optional[str]) -> List[str]:
    """Split a comma-separated query parameter, dropping blanks."""
    if not raw:
        return []
    return [part.strip() for part in raw.split(",") if part.strip()]


def toggle_date_filter(selected: Sequence[str], date: str) -> List[str]:
    """
    Toggle ``date`` in a date-filter selection.

    "everyday" excludes "weekdays" and "weekends", and picking both of those
    collapses the selection to "everyday".
    """
    if date in selected:
        return [d for d in selected if d != date]

    selection = list(selected) + [date]
    if date == EVERYDAY:
        selection = [EVERYDAY]
    elif date in (WEEKDAYS, WEEKENDS):
        selection = [d for d in selection if d != EVERYDAY]
        if WEEKDAYS in selection and WEEKENDS in selection:
            selection = [EVERYDAY]
    return selection


def toggle_time_filter(selected: Sequence[str], time: str) -> List[str]:
    if time in selected:
        return [t for t in selected if t != time]
    return list(selected) + [time]


def _validate(values: Iterable[str], allowed, label: str) -> List[str]:
    allowed_values = {member.value for member in allowed}
    cleaned = [value.lower() for value in values]
    unknown = [value for value in cleaned if value not in allowed_values]
    if unknown:
        raise ValidationError(
            f"Unknown {label} filter(s): {', '.join(unknown)}. Allowed: {', '.join(sorted(allowed_values))}"
        )
    return cleaned


def _availability_matches(values: List[str]):
    # availability is stored as JSON; the date and time vocabularies are disjoint,
    # so a quoted token match on the serialised document is unambiguous
    text = cast(User.availability, String)
    return or_(*[text.ilike(f'%"{value}"%') for value in values])


def _matches_term(user: User, term: str) -> bool:
    term = term.lower()
    if term in (user.name or "").lower():
        return True
    if term in (user.location or "").lower():
        return True
    return any(term in skill.name.lower() for skill in list(user.skills_offered) + list(user.skills_wanted))


def sort_users(users: List[User], sort_by: Optional[str] = None) -> List[User]:
    if not sort_by:
        return users
    if sort_by not in SORT_OPTIONS:
        raise ValidationError(f"Unknown sort option '{sort_by}'. Allowed: {', '.join(SORT_OPTIONS)}")

    if sort_by == "recent":
        return sorted(users, key=lambda u: u.created_at, reverse=True)
    if sort_by == "skills":
        return sorted(users, key=lambda u: len(u.skills_offered) + len(u.skills_wanted), reverse=True)
    if sort_by == "rating":
        return sorted(users, key=lambda u: u.rating or 0, reverse=True)
    # location: alphabetical, users without one last
    return sorted(users, key=lambda u: (u.location is None, (u.location or "").lower()))


class SearchService:
    def __init__(self, db: Session):
        self.db = db

    def _public_users(self):
        return (
            select(User)
            .options(selectinload(User.skills_offered), selectinload(User.skills_wanted))
            .where(User.is_public.is_(True), User.is_banned.is_(False))
        )

    def search(
        self,
        search_term: Optional[str] = None,
        skill_categories: Optional[List[str]] = None,
        date_filters: Optional[List[str]] = None,
        time_filters: Optional[List[str]] = None,
        sort_by: Optional[str] = None,
    ) -> List[User]:
        """
        Find public users matching every supplied filter.

        Category and availability filters run in the database. The free-text
        term is applied afterwards over that result, matching name, location
        or any offered/wanted skill name case-insensitively.
        """
        query = self._public_users()

        if skill_categories:
            offered = (
                select(user_skills_offered.c.user_id)
                .join(Skill, Skill.id == user_skills_offered.c.skill_id)
                .where(Skill.category.in_(skill_categories))
            )
            wanted = (
                select(user_skills_wanted.c.user_id)
                .join(Skill, Skill.id == user_skills_wanted.c.skill_id)
                .where(Skill.category.in_(skill_categories))
            )
            query = query.where(or_(User.id.in_(offered), User.id.in_(wanted)))

        if date_filters:
            query = query.where(_availability_matches(_validate(date_filters, AvailabilityDate, "date")))
        if time_filters:
            query = query.where(_availability_matches(_validate(time_filters, AvailabilityTime, "time")))

        users = list(self.db.scalars(query.order_by(User.created_at.desc())))

        term = (search_term or "").strip()
        if term:
            users = [user for user in users if _matches_term(user, term)]

        logger.debug(f"Search matched {len(users)} users")
        return sort_users(users, sort_by)

    def list_public(self, page: int = 1, limit: int = 20) -> dict:
        """One page of public users with their skills, newest first."""
        page = max(page, 1)
        total_count = self.db.scalar(
            select(func.count(User.id)).where(User.is_public.is_(True), User.is_banned.is_(False))
        )
        users = list(self.db.scalars(
            self._public_users()
            .order_by(User.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        ))
        total_pages = math.ceil(total_count / limit) if total_count else 0
        return {
            "data": users,
            "total_count": total_count,
            "total_pages": total_pages,
            "current_page": page,
            "has_next_page": page < total_pages,
            "has_previous_page": page > 1,
        }
