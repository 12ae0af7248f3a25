"""
Modelos de base de datos (ORM).
"""
from sqlalchemy import Column, String, DateTime, JSON
from sqlalchemy.sql import func

from app.infrastructure.database.session import Base


class DocumentModel(Base):
    """
    Documento sin esquema del store: coleccion + id + cuerpo JSON.
    """
    
    __tablename__ = "documents"
    
    collection = Column(String(128), primary_key=True)
    id = Column(String(64), primary_key=True)
    data = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
    
    def __repr__(self):
        return f"<Document(collection={self.collection}, id={self.id})>"
