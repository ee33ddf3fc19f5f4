"""
SQLAlchemy database models for the ORM workshop.

This module defines every table used by the workshop modules:
- Actor, Movie and the actors_in_movies link table (MVC, reactive and multi-tenant demos)
- Post, Comment and Customer (reactive repository demo)
- Country (cached lookup demo)
- User, UserCredentials and UserEvent (cache strategy demos)
"""

from sqlalchemy import (
    BigInteger,
    Column,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    LargeBinary,
    String,
    Table,
    Text,
    func,
)
from sqlalchemy.orm import declarative_base
from sqlalchemy.orm import relationship

from ..models.enums import UserEventType

# Create the declarative base for all models
Base = declarative_base()

# SQLite only autoincrements INTEGER PRIMARY KEY columns
LongId = BigInteger().with_variant(Integer, "sqlite")


actors_in_movies = Table(
    "actors_in_movies",
    Base.metadata,
    Column("movie_id", LongId, ForeignKey("movies.id", ondelete="CASCADE"), primary_key=True),
    Column("actor_id", LongId, ForeignKey("actors.id", ondelete="CASCADE"), primary_key=True),
)


class Movie(Base):
    """
    Movie with its producer and release date.

    Cast members are reached through the actors_in_movies link table.
    """
    __tablename__ = "movies"

    id = Column(LongId, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    producer_name = Column(String(255), nullable=False)
    release_date = Column(DateTime, nullable=False)

    actors = relationship(
        "Actor",
        secondary=actors_in_movies,
        back_populates="movies",
        passive_deletes=True,
        lazy="select",
    )

    def __repr__(self):
        return f"<Movie(id={self.id}, name='{self.name}', producer_name='{self.producer_name}')>"


class Actor(Base):
    """Actor appearing in zero or more movies."""
    __tablename__ = "actors"

    id = Column(LongId, primary_key=True, autoincrement=True)
    first_name = Column(String(255), nullable=False)
    last_name = Column(String(255), nullable=False)
    birthday = Column(Date, nullable=True)

    movies = relationship(
        "Movie",
        secondary=actors_in_movies,
        back_populates="actors",
        passive_deletes=True,
        lazy="select",
    )

    def __repr__(self):
        return f"<Actor(id={self.id}, first_name='{self.first_name}', last_name='{self.last_name}')>"


class Post(Base):
    __tablename__ = "posts"

    id = Column(LongId, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)

    comments = relationship(
        "Comment",
        back_populates="post",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="select",
    )

    def __repr__(self):
        return f"<Post(id={self.id}, title='{self.title}')>"


class Comment(Base):
    __tablename__ = "comments"

    id = Column(LongId, primary_key=True, autoincrement=True)
    post_id = Column(LongId, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False, index=True)
    content = Column(Text, nullable=False)

    post = relationship("Post", back_populates="comments", lazy="select")

    def __repr__(self):
        return f"<Comment(id={self.id}, post_id={self.post_id})>"


class Customer(Base):
    __tablename__ = "customer"

    id = Column(LongId, primary_key=True, autoincrement=True)
    firstname = Column(String(100), nullable=False, index=True)
    lastname = Column(String(100), nullable=False, index=True)

    def __repr__(self):
        return f"<Customer(id={self.id}, firstname='{self.firstname}', lastname='{self.lastname}')>"


class Country(Base):
    """
    ISO 3166 country code with a display name and a long description.

    Looked up by code on every request, which makes it the canonical
    cache-aside example.
    """
    __tablename__ = "countries"

    id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(String(2), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)

    def __repr__(self):
        return f"<Country(code='{self.code}', name='{self.name}')>"


class User(Base):
    """
    User profile cached with read-through and write-through.

    Invalidating a cached user also deletes the row.
    """
    __tablename__ = "users"

    id = Column(LongId, primary_key=True, autoincrement=True)
    username = Column(String(255), unique=True, nullable=False, index=True)
    first_name = Column(String(255), nullable=False)
    last_name = Column(String(255), nullable=False)
    address = Column(String(255), nullable=True)
    zipcode = Column(String(24), nullable=True)
    birth_date = Column(Date, nullable=True)
    avatar = Column(LargeBinary, nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=True)

    def __repr__(self):
        return f"<User(id={self.id}, username='{self.username}')>"


class UserCredentials(Base):
    """Read-through only. Invalidation never touches the table."""
    __tablename__ = "user_credentials"

    id = Column(String(36), primary_key=True)
    username = Column(String(36), unique=True, nullable=False, index=True)
    email = Column(String(255), nullable=False)
    last_login_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=True)

    def __repr__(self):
        return f"<UserCredentials(id='{self.id}', username='{self.username}')>"


class UserEvent(Base):
    """User activity written to the cache first and persisted with write-behind."""
    __tablename__ = "user_action"

    # Client-assigned so the cache key exists before the row does
    id = Column(LongId, primary_key=True, autoincrement=False)
    username = Column(String(255), nullable=False)
    event_source = Column(String(128), nullable=False)
    event_type = Column(Enum(UserEventType, native_enum=False, length=32), nullable=False)
    event_details = Column(String(2000), nullable=True)
    event_time = Column(DateTime, nullable=False)

    def __repr__(self):
        return f"<UserEvent(id={self.id}, username='{self.username}', event_type={self.event_type})>"


# Composite indexes for the lookups used by the demos
Index("idx_actor_name", Actor.first_name, Actor.last_name)
Index("idx_user_events", UserEvent.username, UserEvent.event_time)


def create_all_tables(engine):
    """
    Create all database tables using the provided SQLAlchemy engine.

    Args:
        engine: SQLAlchemy engine or connection
    """
    Base.metadata.create_all(bind=engine)


def drop_all_tables(engine):
    """
    Drop all database tables using the provided SQLAlchemy engine.

    Args:
        engine: SQLAlchemy engine or connection
    """
    Base.metadata.drop_all(bind=engine)


__all__ = [
    "Base",
    "Actor",
    "Movie",
    "actors_in_movies",
    "Post",
    "Comment",
    "Customer",
    "Country",
    "User",
    "UserCredentials",
    "UserEvent",
    "UserEventType",
    "create_all_tables",
    "drop_all_tables",
]
