"""SQLAlchemy models for persistence layer (content versions, audit log, admin users)."""

from __future__ import annotations

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Index,
    Integer,
    MetaData,
    String,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Classe de base pour tous les modèles SQLAlchemy."""

    metadata = MetaData()


class ContentVersionORM(Base):
    """Modèle ORM des versions de contenu (append-only, seule `is_active` évolue)."""

    __tablename__ = "content"

    id = Column(Integer, primary_key=True, autoincrement=True)
    section = Column(String(100), nullable=False)
    payload = Column(JSON, nullable=False)
    version = Column(Integer, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_by = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        UniqueConstraint("section", "version", name="uq_content_section_version"),
        # Au plus une version active par section, garanti par la base elle-même
        Index(
            "uq_content_one_active_per_section",
            "section",
            unique=True,
            sqlite_where=text("is_active = 1"),
            postgresql_where=text("is_active"),
        ),
    )


class ContentAuditLogORM(Base):
    """Modèle ORM du journal d'audit des écritures acceptées."""

    __tablename__ = "content_audit_log"

    id = Column(Integer, primary_key=True, autoincrement=True)
    section = Column(String(100), nullable=False, index=True)
    version = Column(Integer, nullable=False)
    action = Column(String(50), nullable=False)
    user_id = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)


class AdminUserORM(Base):
    """Modèle ORM des comptes administrateurs autorisés à éditer les contenus."""

    __tablename__ = "admin_users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), nullable=False, unique=True)
    password_hash = Column(String(255), nullable=False)
    is_admin = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False)
