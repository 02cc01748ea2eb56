import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.security import OAuth2PasswordBearer, OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from ....core.database import get_db
from ....core.exceptions import AuthorizationError
from ....core.security import create_access_token, decode_access_token
from ....models import User
from ....schemas.rating import CanRateResponse, RatingResponse
from ....schemas.skill import UserSkillsUpdate
from ....schemas.swap import DeleteResult
from ....schemas.user import (
    AvailabilityDate,
    AvailabilityTime,
    PaginatedUsers,
    Token,
    UserCreate,
    UserProfile,
    UserUpdate,
    UserWithSkills,
)
from ....services.rating_service import RatingService
from ....services.search_service import (
    SearchService,
    parse_filter_list,
    toggle_date_filter,
    toggle_time_filter,
)
from ....services.user_service import UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])

oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl="/api/v1/users/login",
    description="Enter the access token directly (without 'Bearer' prefix)",
    scheme_name="JWT"
)


def get_current_user(token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)) -> User:
    """Resolve the bearer token to an active user."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    user_id = decode_access_token(token)
    if not user_id:
        raise credentials_exception

    user = db.get(User, user_id)
    if user is None:
        raise credentials_exception
    if user.is_banned:
        raise AuthorizationError("Your account has been suspended")
    return user


def get_current_admin(current_user: User = Depends(get_current_user)) -> User:
    if not current_user.is_admin:
        raise AuthorizationError("Admin access required")
    return current_user


# Routes
@router.post("/register", response_model=UserProfile, status_code=status.HTTP_201_CREATED)
def register(user_data: UserCreate, db: Session = Depends(get_db)):
    """Register a new user."""
    return UserService(db).create_user(user_data)


@router.post("/login", response_model=Token)
def login(form_data: OAuth2PasswordRequestForm = Depends(), db: Session = Depends(get_db)):
    """Log in with email (as username) and password and return an access token."""
    user = UserService(db).authenticate(form_data.username, form_data.password)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if user.is_banned:
        raise AuthorizationError("Your account has been suspended")

    access_token = create_access_token(data={"sub": user.id})
    return {"access_token": access_token, "token_type": "bearer"}


@router.get("/me", response_model=UserProfile)
def get_current_user_profile(current_user: User = Depends(get_current_user)):
    """Get the current user's profile."""
    return current_user


@router.patch("/me", response_model=UserProfile)
def update_current_user_profile(
    user_update: UserUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Update the current user's profile. Only the fields sent are changed."""
    return UserService(db).update_user(current_user.id, user_update)


@router.put("/me/skills", response_model=UserProfile)
def set_current_user_skills(
    skills: UserSkillsUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Replace the skills the current user offers and wants."""
    return UserService(db).set_skills(current_user.id, skills.skills_offered, skills.skills_wanted)


@router.delete("/me", response_model=DeleteResult)
def delete_current_user(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Delete the current user's account and everything attached to it."""
    UserService(db).delete_account(current_user.id)
    return {"deleted": True}


@router.get("/", response_model=PaginatedUsers)
def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db)
):
    """Get one page of public users."""
    return SearchService(db).list_public(page=page, limit=limit)


@router.get("/search", response_model=List[UserWithSkills])
def search_users(
    q: Optional[str] = Query(None, description="Matches name, location or skill name"),
    skills: Optional[str] = Query(None, description="Comma-separated skill categories"),
    dates: Optional[str] = Query(None, description="Comma-separated: weekends, weekdays, everyday"),
    times: Optional[str] = Query(None, description="Comma-separated: morning, evening, night"),
    sort: Optional[str] = Query(None, description="recent, skills, rating or location"),
    db: Session = Depends(get_db)
):
    """Search public users. Every supplied filter must match."""
    return SearchService(db).search(
        search_term=q,
        skill_categories=parse_filter_list(skills),
        date_filters=parse_filter_list(dates),
        time_filters=parse_filter_list(times),
        sort_by=sort,
    )


@router.get("/search/filters/dates")
def toggle_date_selection(
    date: AvailabilityDate,
    selected: Optional[str] = Query(None, description="Current comma-separated date selection"),
):
    """Apply one click on a date filter to the current selection."""
    return {"selected": toggle_date_filter(parse_filter_list(selected), date.value)}


@router.get("/search/filters/times")
def toggle_time_selection(
    time: AvailabilityTime,
    selected: Optional[str] = Query(None, description="Current comma-separated time selection"),
):
    """Apply one click on a time filter to the current selection."""
    return {"selected": toggle_time_filter(parse_filter_list(selected), time.value)}


@router.get("/{user_id}", response_model=UserWithSkills)
def get_user_by_id(
    user_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get a user's profile by ID."""
    return UserService(db).get_profile(user_id, viewer_id=current_user.id)


@router.get("/{user_id}/can-rate", response_model=CanRateResponse)
def can_rate_user(
    user_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Whether the current user shares an accepted or completed swap with this user."""
    return {"can_rate": RatingService(db).can_rate(current_user.id, user_id)}


@router.get("/{user_id}/ratings", response_model=List[RatingResponse])
def get_user_ratings(
    user_id: str,
    skip: int = Query(0, ge=0),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db)
):
    """Ratings a user has received, newest first."""
    return RatingService(db).list_for_user(user_id, skip=skip, limit=limit)
