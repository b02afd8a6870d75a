"""Document model."""

from sqlalchemy import BigInteger, Boolean, Column, String, Text, Uuid

from velai.db.base import Base, JSONType


class Document(Base):
    """Uploaded file owned by a candidate or employer."""

    __tablename__ = "documents"

    owner_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    document_type = Column(String(30), nullable=False, index=True)
    file_path = Column(String(500), nullable=False)  # key inside the storage bucket
    file_size = Column(BigInteger)
    file_type = Column(String(100))  # MIME type

    # Display name; absent in deployments that have not run the add_file_name migration
    file_name = Column(String(255), nullable=True)

    is_verified = Column(Boolean, default=False, nullable=False)
    verify_notes = Column(Text)
    extra_metadata = Column("metadata", JSONType, default=dict)  # 'metadata' is reserved by SQLAlchemy

    def __repr__(self):
        return f"<Document {self.document_type} {self.file_path}>"
