"""
Database models for Sonar build results.
"""
from datetime import datetime

from sqlalchemy import Column, Integer, String, DateTime, Text, Boolean, Index
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class SonarBuildRecord(Base):
    """Sonar action recorded for one build of a job."""
    __tablename__ = "sonar_builds"

    id = Column(Integer, primary_key=True, index=True)
    job_name = Column(String(255), nullable=False, index=True)
    build_number = Column(Integer, nullable=False)
    result = Column(String(20), nullable=True)  # SUCCESS, UNSTABLE, FAILURE, NOT_BUILT, ABORTED
    sonar_url = Column(String(1000), nullable=True)
    skipped = Column(Boolean, nullable=False, default=False)
    skip_reason = Column(Text, nullable=True)
    has_action = Column(Boolean, nullable=False, default=True)  # skipped builds carry no Sonar action
    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        Index('idx_sonar_builds_job_number', 'job_name', 'build_number', unique=True),
    )

    def __repr__(self):
        return f"<SonarBuildRecord(job='{self.job_name}', number={self.build_number}, url='{self.sonar_url}')>"
