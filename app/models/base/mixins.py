from sqlalchemy import Column, DateTime, String
from sqlalchemy.sql import func


class TimestampMixin:
    created_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )
    updated_at = Column(
        DateTime(timezone=True),
        onupdate=func.now()
    )


class AuthorshipMixin:
    # Free-text actor names; user accounts live outside this service
    created_by = Column(String(120), nullable=False, default="System User")
    last_modified_by = Column(String(120), nullable=True)
