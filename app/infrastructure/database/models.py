"""SQLAlchemy database models."""

import uuid

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import DeclarativeBase, relationship

from app.domain.entities import utcnow


class Base(DeclarativeBase):
    pass


book_genres = Table(
    "book_genres",
    Base.metadata,
    Column("book_id", Uuid, ForeignKey("books.id", ondelete="CASCADE"), primary_key=True),
    Column("genre_id", Uuid, ForeignKey("genres.id", ondelete="CASCADE"), primary_key=True),
)

prep_keyword_links = Table(
    "prep_keyword_links",
    Base.metadata,
    Column("prep_id", Uuid, ForeignKey("preps.id", ondelete="CASCADE"), primary_key=True),
    Column("keyword_id", Uuid, ForeignKey("prep_keywords.id", ondelete="CASCADE"), primary_key=True),
)


class UserProfileModel(Base):
    __tablename__ = "user_profiles"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    subject = Column(String(255), nullable=False, unique=True, index=True)
    email = Column(String(255), nullable=False, index=True)
    display_name = Column(String(120), nullable=False)
    role = Column(String(16), nullable=False, default="MEMBER")
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)


class AuthorModel(Base):
    __tablename__ = "authors"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(180), nullable=False, index=True)
    slug = Column(String(240), nullable=False, unique=True)
    bio = Column(Text, nullable=True)

    books = relationship("BookModel", back_populates="author", lazy="raise")


class GenreModel(Base):
    __tablename__ = "genres"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(120), nullable=False)
    slug = Column(String(140), nullable=False, unique=True)
    description = Column(Text, nullable=True)


class BookModel(Base):
    __tablename__ = "books"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    title = Column(String(240), nullable=False, index=True)
    subtitle = Column(String(240), nullable=True)
    slug = Column(String(240), nullable=False, unique=True)
    synopsis = Column(Text, nullable=True)
    cover_image_url = Column(String(1024), nullable=True)
    isbn = Column(String(32), nullable=True)
    published_year = Column(Integer, nullable=True)
    author_id = Column(Uuid, ForeignKey("authors.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    author = relationship("AuthorModel", back_populates="books", lazy="selectin")
    genres = relationship("GenreModel", secondary=book_genres, lazy="selectin", order_by="GenreModel.name")
    preps = relationship(
        "PrepModel",
        back_populates="book",
        lazy="raise",
        cascade="all, delete-orphan",
        order_by="PrepModel.heading",
    )


class KeywordModel(Base):
    __tablename__ = "prep_keywords"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(120), nullable=False)
    slug = Column(String(140), nullable=False, unique=True)
    description = Column(Text, nullable=True)


class PrepModel(Base):
    __tablename__ = "preps"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    book_id = Column(Uuid, ForeignKey("books.id", ondelete="CASCADE"), nullable=False, index=True)
    heading = Column(String(160), nullable=False)
    summary = Column(Text, nullable=False)
    watch_for = Column(Text, nullable=True)
    color_hint = Column(String(32), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    book = relationship("BookModel", back_populates="preps", lazy="raise")
    keywords = relationship(
        "KeywordModel", secondary=prep_keyword_links, lazy="selectin", order_by="KeywordModel.name"
    )
    score = relationship(
        "PromptScoreModel", back_populates="prep", uselist=False, lazy="selectin", cascade="all, delete-orphan"
    )
    votes = relationship("PrepVoteModel", back_populates="prep", lazy="selectin", cascade="all, delete-orphan")
    feedback = relationship(
        "PromptFeedbackModel",
        back_populates="prep",
        lazy="raise",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class PrepVoteModel(Base):
    __tablename__ = "prep_votes"
    __table_args__ = (UniqueConstraint("prep_id", "user_id", name="uq_prep_vote_user"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    prep_id = Column(Uuid, ForeignKey("preps.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Uuid, ForeignKey("user_profiles.id"), nullable=False, index=True)
    value = Column(String(16), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    prep = relationship("PrepModel", back_populates="votes")


class PromptFeedbackModel(Base):
    __tablename__ = "prompt_feedback"
    __table_args__ = (
        Index("ix_prompt_feedback_prep_dimension", "prep_id", "dimension"),
        Index("ix_prompt_feedback_created_at", "created_at"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    prep_id = Column(Uuid, ForeignKey("preps.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Uuid, ForeignKey("user_profiles.id"), nullable=False, index=True)
    dimension = Column(String(32), nullable=False)
    value = Column(String(16), nullable=False)
    note = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    prep = relationship("PrepModel", back_populates="feedback", lazy="raise")


class PromptScoreModel(Base):
    __tablename__ = "prompt_scores"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    prep_id = Column(Uuid, ForeignKey("preps.id", ondelete="CASCADE"), nullable=False, unique=True)
    agree_count = Column(Integer, nullable=False, default=0)
    disagree_count = Column(Integer, nullable=False, default=0)
    total_count = Column(Integer, nullable=False, default=0, index=True)
    score = Column(Float, nullable=False, default=0.0, index=True)
    dimension_tallies = Column(JSON, nullable=True)
    last_feedback_at = Column(DateTime(timezone=True), nullable=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    prep = relationship("PrepModel", back_populates="score", lazy="raise")


class BookSuggestionModel(Base):
    __tablename__ = "book_suggestions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    submitted_by_id = Column(Uuid, ForeignKey("user_profiles.id"), nullable=False, index=True)
    title = Column(String(180), nullable=False)
    author_name = Column(String(120), nullable=False)
    notes = Column(Text, nullable=True)
    genre_ideas = Column(JSON, nullable=False, default=list)
    prep_ideas = Column(JSON, nullable=False, default=list)
    status = Column(String(16), nullable=False, default="PENDING", index=True)
    moderator_note = Column(String(500), nullable=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    submitted_by = relationship("UserProfileModel", lazy="selectin")


class BookMetadataSuggestionModel(Base):
    __tablename__ = "book_metadata_suggestions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    book_id = Column(Uuid, ForeignKey("books.id", ondelete="CASCADE"), nullable=False, index=True)
    submitted_by_id = Column(Uuid, ForeignKey("user_profiles.id"), nullable=False, index=True)
    suggested_synopsis = Column(Text, nullable=True)
    suggested_genres = Column(JSON, nullable=False, default=list)
    status = Column(String(16), nullable=False, default="PENDING", index=True)
    moderator_note = Column(String(500), nullable=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    book = relationship("BookModel", lazy="selectin")
    submitted_by = relationship("UserProfileModel", lazy="selectin")


class PrepSuggestionModel(Base):
    __tablename__ = "prep_suggestions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    book_id = Column(Uuid, ForeignKey("books.id", ondelete="CASCADE"), nullable=False, index=True)
    submitted_by_id = Column(Uuid, ForeignKey("user_profiles.id"), nullable=False, index=True)
    title = Column(String(120), nullable=False)
    description = Column(Text, nullable=False)
    keyword_hints = Column(JSON, nullable=False, default=list)
    status = Column(String(16), nullable=False, default="PENDING", index=True)
    moderator_note = Column(String(500), nullable=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    book = relationship("BookModel", lazy="selectin")
    submitted_by = relationship("UserProfileModel", lazy="selectin")


class ReadingStatusModel(Base):
    __tablename__ = "reading_statuses"
    __table_args__ = (
        UniqueConstraint("user_id", "book_id", name="uq_reading_status_user_book"),
        Index("ix_reading_statuses_user_status", "user_id", "status"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("user_profiles.id"), nullable=False)
    book_id = Column(Uuid, ForeignKey("books.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(String(16), nullable=False, default="READING")
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    book = relationship("BookModel", lazy="selectin")
