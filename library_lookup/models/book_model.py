from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    DateTime,
    ForeignKey,
    JSON,
    Boolean,
    func,
    text,
)
from sqlalchemy.orm import relationship
from library_lookup.database import Base

UNKNOWN_TITLE = "Unknown Title"


class Book(Base):
    __tablename__ = "books"

    id = Column(Integer, primary_key=True, index=True)
    # stable join key between the Google Books catalog and local annotations
    google_book_id = Column(String, unique=True, index=True, nullable=False)

    title = Column(String, nullable=False, default=UNKNOWN_TITLE)
    authors = Column(JSON, nullable=False, default=list)
    description = Column(Text)
    image_url = Column(String)
    isbn = Column(String(13))
    featured = Column(Boolean, nullable=False, default=False, server_default=text("false"))

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    ratings = relationship(
        "Rating",
        back_populates="book",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    comments = relationship(
        "Comment",
        back_populates="book",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    tags = relationship("Tag", secondary="book_tags", back_populates="books")


class Tag(Base):
    __tablename__ = "tags"

    tag_id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False)

    books = relationship("Book", secondary="book_tags", back_populates="tags")


class BookTag(Base):
    __tablename__ = "book_tags"

    # composite key: a book carries a given tag at most once
    book_id = Column(
        Integer,
        ForeignKey("books.id", ondelete="CASCADE"),
        primary_key=True,
    )
    tag_id = Column(
        Integer,
        ForeignKey("tags.tag_id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    )
