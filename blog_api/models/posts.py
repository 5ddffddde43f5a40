import enum
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from . import Base, utcnow


class PostStatus(str, enum.Enum):
    draft = 'draft'
    published = 'published'

    @classmethod
    def from_request(cls, raw) -> 'PostStatus':
        # only an explicit "draft" keeps a post unpublished
        return cls.draft if raw == cls.draft.value else cls.published


class Post(Base):
    __tablename__ = 'posts'
    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    excerpt = Column(Text, nullable=True)
    image_url = Column(String, nullable=True)
    user_id = Column(Integer, ForeignKey('users.id'), index=True, nullable=False)
    status = Column(String(20), nullable=False, default=PostStatus.published.value)
    created_at = Column(DateTime(timezone=True), index=True, nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    deleted_at = Column(DateTime(timezone=True), index=True, nullable=True)

    user = relationship('User', lazy='selectin')
