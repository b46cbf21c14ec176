from sqlalchemy import BigInteger, Column, Integer, String, Text, DateTime, JSON
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


class TeamMemberRow(Base):
    __tablename__ = 'team_members'
    # insertion order of the team
    position = Column(Integer, primary_key=True, autoincrement=True)
    pokemon_id = Column(Integer, unique=True, index=True, nullable=False)
    # full member payload (detail + moves) as sent by the client
    payload = Column(JSON, nullable=False)
    added_at = Column(DateTime(timezone=True), server_default=func.now())


class ContactMessageRow(Base):
    __tablename__ = 'contact_messages'
    id = Column(BigInteger, primary_key=True, autoincrement=False)
    name = Column(String(200), nullable=False)
    email = Column(String(320), nullable=False)
    subject = Column(String(400), nullable=False)
    message = Column(Text, nullable=False)
    timestamp = Column(String(64), nullable=False)
    status = Column(String(16), nullable=False, default='unread')
