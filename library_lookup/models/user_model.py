from sqlalchemy import Column, Integer, String, DateTime, func
from sqlalchemy.orm import relationship

from library_lookup.database import Base

class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(50), nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    role = Column(String, nullable=False, default="user", server_default="user")  # user or admin

    registered_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=True)

    ratings = relationship("Rating", back_populates="user", passive_deletes=True)
    comments = relationship("Comment", back_populates="user", passive_deletes=True)
