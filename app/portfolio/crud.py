from sqlalchemy import or_
from sqlalchemy.orm import Session, Query
from typing import Optional, List, Tuple
import logging

from .models import Portfolio, PortfolioVersion
from .schemas import (
    CreatePortfolioRequest, UpdatePortfolioRequest, CreateVersionRequest,
    UpdateVersionRequest, InitialVersionRequest, PortfolioQuery,
    PortfolioResponse, PortfolioVersionResponse,
)
from ..admin.moderation import ENTITY_PORTFOLIO, status_for_new
from ..auth.authentication import Principal
from ..core.database import utcnow
from ..core.errors import ForbiddenError, InvalidOperationError, NotFoundError
from ..core.pagination import apply_sort, paginate
from ..core.thumbnail import synthesize
from ..user.models import User
from ..user.schemas import UserResponse

logger = logging.getLogger(__name__)

DEFAULT_VERSION_LABEL = "v1.0"

PORTFOLIO_SORT_COLUMNS = {"created_at", "updated_at", "title", "category", "status", "likes", "views"}
USER_PORTFOLIO_SORT_COLUMNS = {"created_at", "title", "category", "status"}

CATEGORIES = [
    {"value": "all", "label": "All works"},
    {"value": "ai", "label": "AI generated"},
    {"value": "ui", "label": "UI/UX"},
    {"value": "web", "label": "Web design"},
    {"value": "mobile", "label": "Mobile apps"},
    {"value": "brand", "label": "Brand design"},
    {"value": "3d", "label": "3D rendering"},
]


# ---------------------------------------------------------------------------
# Version labels
# ---------------------------------------------------------------------------

def increment_version_label(label: Optional[str]) -> str:
    """
    Bump the minor component of a "vMAJOR.MINOR" label.

    Args:
        label: previous label, e.g. "v1.3"

    Returns:
        str: "v1.4" for "v1.3"; "v1.0" when the label cannot be parsed
    """
    if not label or not label.startswith("v"):
        return DEFAULT_VERSION_LABEL
    parts = label[1:].split(".")
    if len(parts) < 2 or not parts[0].isdigit() or not parts[1].isdigit():
        return DEFAULT_VERSION_LABEL
    return f"v{int(parts[0])}.{int(parts[1]) + 1}"


def latest_version(db: Session, portfolio_id: str) -> Optional[PortfolioVersion]:
    return (
        db.query(PortfolioVersion)
        .filter(PortfolioVersion.portfolio_id == portfolio_id)
        .order_by(PortfolioVersion.sequence.desc(), PortfolioVersion.created_at.desc())
        .first()
    )


def build_initial_versions(items: List[InitialVersionRequest]) -> List[PortfolioVersion]:
    """
    Turn the version list of a create request into rows.

    The first item flagged active wins, otherwise the first item is active.
    Unnamed items are labelled v1.0, v1.1, ... by position, and the position
    becomes the version's sequence number.
    """
    if not items:
        return []

    active_index = next((i for i, item in enumerate(items) if item.is_active), 0)
    created_at = utcnow()
    versions = []
    for i, item in enumerate(items):
        versions.append(PortfolioVersion(
            version=item.name or f"v1.{i}",
            title=item.title,
            description=item.description,
            html_content=item.html_content,
            thumbnail=synthesize(item.html_content),
            change_log=item.change_log,
            is_active=(i == active_index),
            sequence=i,
            created_at=created_at,
            updated_at=created_at,
        ))
    return versions


def _deactivate_versions(db: Session, portfolio_id: str, keep_id: Optional[str] = None):
    query = db.query(PortfolioVersion).filter(
        PortfolioVersion.portfolio_id == portfolio_id,
        PortfolioVersion.is_active.is_(True),
    )
    if keep_id:
        query = query.filter(PortfolioVersion.id != keep_id)
    query.update({PortfolioVersion.is_active: False}, synchronize_session="fetch")


# ---------------------------------------------------------------------------
# Visibility and lookups
# ---------------------------------------------------------------------------

def visible_portfolio_query(db: Session, principal: Principal) -> Query:
    """
    Portfolios the caller may read: everything for an admin, published ones
    plus the caller's own for an authenticated user, published only otherwise.
    """
    query = db.query(Portfolio)
    if principal.is_admin:
        return query
    if principal.is_authenticated:
        return query.filter(or_(Portfolio.status == "published", Portfolio.user_id == principal.user_id))
    return query.filter(Portfolio.status == "published")


def get_portfolio(db: Session, portfolio_id: str) -> Optional[Portfolio]:
    return db.query(Portfolio).filter(Portfolio.id == portfolio_id).first()


def get_portfolio_or_404(db: Session, portfolio_id: str) -> Portfolio:
    portfolio = get_portfolio(db, portfolio_id)
    if portfolio is None:
        raise NotFoundError("Portfolio not found")
    return portfolio


def get_visible_portfolio(db: Session, principal: Principal, portfolio_id: str) -> Portfolio:
    portfolio = visible_portfolio_query(db, principal).filter(Portfolio.id == portfolio_id).first()
    if portfolio is None:
        raise NotFoundError("Portfolio not found")
    return portfolio


def get_owned_portfolio(db: Session, principal: Principal, portfolio_id: str) -> Portfolio:
    """Load a portfolio the caller is allowed to modify."""
    portfolio = get_portfolio_or_404(db, portfolio_id)
    if not principal.can_modify(portfolio.user_id):
        raise ForbiddenError("Permission denied")
    return portfolio


def get_portfolio_for_read(db: Session, principal: Principal, portfolio_id: str) -> Portfolio:
    """
    Fetch a portfolio for display. Reads of a published portfolio count as
    a view; the counter is incremented in SQL.
    """
    portfolio = get_visible_portfolio(db, principal, portfolio_id)
    if portfolio.status == "published":
        try:
            db.query(Portfolio).filter(Portfolio.id == portfolio_id).update(
                {Portfolio.views: Portfolio.views + 1}, synchronize_session=False
            )
            db.commit()
            db.refresh(portfolio)
        except Exception as e:
            db.rollback()
            logger.error(f"Error counting view for portfolio {portfolio_id}: {str(e)}")
            raise
    return portfolio


# ---------------------------------------------------------------------------
# Portfolio operations
# ---------------------------------------------------------------------------

def create_portfolio(db: Session, owner: User, data: CreatePortfolioRequest) -> Portfolio:
    """
    Create a portfolio together with its initial versions in one transaction.

    Args:
        db: database session
        owner: authenticated author
        data: portfolio fields and the initial version list

    Returns:
        Portfolio: the stored portfolio
    """
    status = status_for_new(db, ENTITY_PORTFOLIO)
    portfolio = Portfolio(
        user_id=owner.id,
        title=data.title,
        author=owner.display_name,
        description=data.description,
        content=data.content,
        category=data.category,
        image_object_id=data.image_object_id or None,
        ai_level=data.ai_level,
        likes=0,
        views=0,
        status=status,
    )
    portfolio.tag_list = data.tags
    portfolio.versions = build_initial_versions(data.versions)

    try:
        db.add(portfolio)
        db.commit()
        db.refresh(portfolio)
    except Exception as e:
        db.rollback()
        logger.error(f"Error creating portfolio: {str(e)}")
        raise
    logger.info(f"Portfolio {portfolio.id} created by {owner.id} with {len(portfolio.versions)} version(s)")
    return portfolio


def update_portfolio(db: Session, principal: Principal, portfolio_id: str, data: UpdatePortfolioRequest) -> Portfolio:
    """Owner or admin update. Only admins may move a portfolio out of draft."""
    portfolio = get_owned_portfolio(db, principal, portfolio_id)

    if data.title:
        portfolio.title = data.title
    if data.description:
        portfolio.description = data.description
    if data.content:
        portfolio.content = data.content
    if data.category:
        portfolio.category = data.category
    if data.tags:
        portfolio.tag_list = data.tags
    if data.image_object_id is not None:
        portfolio.image_object_id = data.image_object_id or None
    if data.ai_level:
        portfolio.ai_level = data.ai_level
    if data.status:
        if not principal.is_admin and data.status != "draft":
            raise ForbiddenError("Only administrators can change the portfolio status")
        portfolio.status = data.status

    owner = portfolio.user
    if owner is not None:
        portfolio.author = owner.display_name

    try:
        db.commit()
        db.refresh(portfolio)
    except Exception as e:
        db.rollback()
        logger.error(f"Error updating portfolio {portfolio_id}: {str(e)}")
        raise
    return portfolio


def soft_delete_portfolio(db: Session, principal: Principal, portfolio_id: str) -> None:
    portfolio = get_owned_portfolio(db, principal, portfolio_id)
    portfolio.status = "deleted"
    try:
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Error deleting portfolio {portfolio_id}: {str(e)}")
        raise
    logger.info(f"Portfolio {portfolio_id} marked deleted by {principal.user_id}")


def hard_delete_portfolio(db: Session, portfolio_id: str) -> None:
    """Admin removal of the portfolio row and all of its versions."""
    portfolio = get_portfolio_or_404(db, portfolio_id)
    try:
        db.delete(portfolio)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Error removing portfolio {portfolio_id}: {str(e)}")
        raise
    logger.info(f"Portfolio {portfolio_id} removed")


def like_portfolio(db: Session, portfolio_id: str) -> int:
    portfolio = db.query(Portfolio).filter(
        Portfolio.id == portfolio_id, Portfolio.status == "published"
    ).first()
    if portfolio is None:
        raise NotFoundError("Portfolio not found")
    try:
        db.query(Portfolio).filter(Portfolio.id == portfolio_id).update(
            {Portfolio.likes: Portfolio.likes + 1}, synchronize_session=False
        )
        db.commit()
        db.refresh(portfolio)
    except Exception as e:
        db.rollback()
        logger.error(f"Error liking portfolio {portfolio_id}: {str(e)}")
        raise
    return portfolio.likes


def update_portfolio_status(db: Session, portfolio_id: str, status: str) -> Portfolio:
    portfolio = get_portfolio_or_404(db, portfolio_id)
    portfolio.status = status
    try:
        db.commit()
        db.refresh(portfolio)
    except Exception as e:
        db.rollback()
        logger.error(f"Error updating status of portfolio {portfolio_id}: {str(e)}")
        raise
    logger.info(f"Portfolio {portfolio_id} status set to {status}")
    return portfolio


def _apply_filters(query: Query, filters: PortfolioQuery) -> Query:
    if filters.category and filters.category != "all":
        query = query.filter(Portfolio.category == filters.category)
    if filters.user_id:
        query = query.filter(Portfolio.user_id == filters.user_id)
    if filters.search:
        term = f"%{filters.search}%"
        query = query.filter(or_(
            Portfolio.title.like(term),
            Portfolio.author.like(term),
            Portfolio.description.like(term),
            Portfolio.tags.like(term),
            Portfolio.content.like(term),
        ))
    return query


def list_portfolios(db: Session, principal: Principal, filters: PortfolioQuery,
                    page: int, page_size: int) -> Tuple[List[Portfolio], int]:
    """Public listing. The status filter is honoured for admins only."""
    query = _apply_filters(visible_portfolio_query(db, principal), filters)
    if principal.is_admin and filters.status:
        query = query.filter(Portfolio.status == filters.status)
    query = apply_sort(query, Portfolio, filters.sort_by, filters.order, PORTFOLIO_SORT_COLUMNS)
    return paginate(query, page, page_size)


def list_user_portfolios(db: Session, user_id: str, filters: PortfolioQuery,
                         page: int, page_size: int) -> Tuple[List[Portfolio], int]:
    query = _apply_filters(db.query(Portfolio).filter(Portfolio.user_id == user_id), filters)
    if filters.status:
        query = query.filter(Portfolio.status == filters.status)
    query = apply_sort(query, Portfolio, filters.sort_by, filters.order, USER_PORTFOLIO_SORT_COLUMNS)
    return paginate(query, page, page_size)


def list_all_portfolios(db: Session, filters: PortfolioQuery,
                        page: int, page_size: int) -> Tuple[List[Portfolio], int]:
    """Admin listing across every status."""
    query = _apply_filters(db.query(Portfolio), filters)
    if filters.status:
        query = query.filter(Portfolio.status == filters.status)
    query = query.order_by(Portfolio.created_at.desc())
    return paginate(query, page, page_size)


# ---------------------------------------------------------------------------
# Version operations
# ---------------------------------------------------------------------------

def list_versions(db: Session, portfolio_id: str) -> List[PortfolioVersion]:
    return (
        db.query(PortfolioVersion)
        .filter(PortfolioVersion.portfolio_id == portfolio_id)
        .order_by(PortfolioVersion.sequence.desc(), PortfolioVersion.created_at.desc())
        .all()
    )


def get_version_or_404(db: Session, portfolio_id: str, version_id: str) -> PortfolioVersion:
    version = db.query(PortfolioVersion).filter(
        PortfolioVersion.id == version_id,
        PortfolioVersion.portfolio_id == portfolio_id,
    ).first()
    if version is None:
        raise NotFoundError("Version not found")
    return version


def create_version(db: Session, portfolio: Portfolio, data: CreateVersionRequest) -> PortfolioVersion:
    """
    Append a version. The label continues from the most recent version.
    A portfolio without versions always gets its first version activated.
    """
    latest = latest_version(db, portfolio.id)
    label = increment_version_label(latest.version) if latest else DEFAULT_VERSION_LABEL
    activate = data.is_active or latest is None

    version = PortfolioVersion(
        portfolio_id=portfolio.id,
        version=label,
        title=data.title,
        description=data.description,
        html_content=data.html_content,
        thumbnail=synthesize(data.html_content),
        change_log=data.change_log,
        is_active=False,
        sequence=latest.sequence + 1 if latest else 0,
    )
    try:
        if activate:
            _deactivate_versions(db, portfolio.id)
            version.is_active = True
        db.add(version)
        db.commit()
        db.refresh(version)
    except Exception as e:
        db.rollback()
        logger.error(f"Error creating version for portfolio {portfolio.id}: {str(e)}")
        raise
    logger.info(f"Version {label} created for portfolio {portfolio.id} (active={version.is_active})")
    return version


def update_version(db: Session, version: PortfolioVersion, data: UpdateVersionRequest) -> PortfolioVersion:
    """
    Patch a version. New HTML regenerates the thumbnail; activating it
    deactivates its siblings in the same transaction.
    """
    if data.is_active is False and version.is_active:
        raise InvalidOperationError("Cannot deactivate the active version; activate another version instead")

    if data.title:
        version.title = data.title
    if data.description:
        version.description = data.description
    if data.html_content:
        version.html_content = data.html_content
        version.thumbnail = synthesize(data.html_content)
    if data.change_log:
        version.change_log = data.change_log

    try:
        if data.is_active and not version.is_active:
            _deactivate_versions(db, version.portfolio_id, keep_id=version.id)
            version.is_active = True
        db.commit()
        db.refresh(version)
    except Exception as e:
        db.rollback()
        logger.error(f"Error updating version {version.id}: {str(e)}")
        raise
    return version


def set_active_version(db: Session, portfolio_id: str, version_id: str) -> PortfolioVersion:
    version = get_version_or_404(db, portfolio_id, version_id)
    try:
        _deactivate_versions(db, portfolio_id, keep_id=version.id)
        version.is_active = True
        db.commit()
        db.refresh(version)
    except Exception as e:
        db.rollback()
        logger.error(f"Error activating version {version_id}: {str(e)}")
        raise
    logger.info(f"Version {version.version} is now active for portfolio {portfolio_id}")
    return version


def delete_version(db: Session, version: PortfolioVersion) -> None:
    if version.is_active:
        raise InvalidOperationError("Cannot delete the active version")
    try:
        db.delete(version)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Error deleting version {version.id}: {str(e)}")
        raise


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------

def version_to_response(version: PortfolioVersion) -> PortfolioVersionResponse:
    return PortfolioVersionResponse.model_validate(version)


def portfolio_to_response(portfolio: Portfolio, image_url: Optional[str] = None,
                          include_versions: bool = True) -> PortfolioResponse:
    """
    Build the API representation of a portfolio.

    Args:
        portfolio: portfolio row with its versions loaded
        image_url: resolved cover image URL, if any
        include_versions: attach the full version list

    Returns:
        PortfolioResponse: response with display fallbacks filled in
    """
    active = portfolio.active_version
    author = portfolio.author or ""
    owner = portfolio.user
    return PortfolioResponse(
        id=portfolio.id,
        user_id=portfolio.user_id,
        title=portfolio.title,
        author=author,
        author_initial=author[:1],
        description=portfolio.description,
        content=portfolio.content,
        category=portfolio.category,
        tags=portfolio.tag_list,
        image=image_url or f"🎨 {portfolio.title}",
        image_object_id=portfolio.image_object_id,
        image_url=image_url,
        ai_level=portfolio.ai_level,
        likes=portfolio.likes or 0,
        views=portfolio.views or 0,
        status=portfolio.status,
        created_at=portfolio.created_at,
        updated_at=portfolio.updated_at,
        user=UserResponse.model_validate(owner) if owner is not None else None,
        versions=[version_to_response(v) for v in portfolio.versions] if include_versions else None,
        active_version=version_to_response(active) if active is not None else None,
        thumbnail=active.thumbnail if active is not None else None,
    )
