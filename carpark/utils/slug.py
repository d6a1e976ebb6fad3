import re
import uuid
from sqlalchemy.orm import Session
from carpark.models.lot import Lot


def generate_slug(text: str) -> str:
    """Convert text to a URL-safe slug: lowercase, hyphens, no special chars."""
    slug = text.lower().strip()
    slug = re.sub(r"[^\w\s-]", "", slug, flags=re.ASCII)
    slug = re.sub(r"[\s_]+", "-", slug)
    slug = re.sub(r"-+", "-", slug).strip("-")
    return slug or "lot"


def make_unique_lot_slug(db: Session, name: str) -> str:
    """Generate a unique lot slug, appending a short random suffix on collision."""
    base_slug = generate_slug(name)
    slug = base_slug
    while db.query(Lot.id).filter(Lot.slug == slug).first() is not None:
        slug = f"{base_slug}-{uuid.uuid4().hex[:6]}"
    return slug
