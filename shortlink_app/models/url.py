from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.sql import func
from shortlink_app.database.connection import Base


MAX_ALIAS_LENGTH = 64


class ShortURL(Base):
    """
    Alias -> original URL mapping.

    The alias is unique: inserting a taken alias is a conflict, never an
    overwrite. Rows are never updated or deleted by the service.
    """
    __tablename__ = "short_urls"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    original_url = Column(Text, nullable=False)
    # unique=True creates the index used for alias lookups
    alias = Column(String(MAX_ALIAS_LENGTH), unique=True, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Load server-side created_at right after INSERT
    __mapper_args__ = {"eager_defaults": True}

    def __repr__(self) -> str:
        return f"<ShortURL id={self.id} alias={self.alias!r}>"


class ClickLog(Base):
    """
    One visit through a short alias. Append-only.
    """
    __tablename__ = "click_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    url_id = Column(Integer, ForeignKey("short_urls.id"), nullable=False, index=True)
    user_agent = Column(Text, nullable=False, default="")
    ip_address = Column(Text, nullable=False, default="")
    clicked_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    __mapper_args__ = {"eager_defaults": True}
