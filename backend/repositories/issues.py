"""
Issue registry repository backed by SQLAlchemy.
"""
from datetime import datetime
from typing import List, Optional
from sqlalchemy import func
from sqlalchemy.orm import Session

from domain.models import IssueRecord, IssueStatus
from repositories.models import IssueORM


def _issue_from_orm(orm: IssueORM) -> IssueRecord:
    return IssueRecord(
        id=orm.id,
        book_id=orm.book_id,
        isbn=orm.isbn,
        reader_id=orm.reader_id,
        approver_id=orm.approver_id,
        issue_date=orm.issue_date,
        expected_return_date=orm.expected_return_date,
        status=IssueStatus(orm.status),
        return_date=orm.return_date,
        return_approver_id=orm.return_approver_id,
    )


class IssuesRepository:
    """Records of copies handed to readers."""

    def insert(self, session: Session, record: IssueRecord) -> IssueRecord:
        orm = IssueORM(
            book_id=record.book_id,
            isbn=record.isbn,
            reader_id=record.reader_id,
            approver_id=record.approver_id,
            status=record.status.value,
            issue_date=record.issue_date,
            expected_return_date=record.expected_return_date,
        )
        session.add(orm)
        session.flush()
        return _issue_from_orm(orm)

    def get(self, session: Session, issue_id: int) -> Optional[IssueRecord]:
        orm = session.get(IssueORM, issue_id, populate_existing=True)
        return _issue_from_orm(orm) if orm else None

    def list_for_reader(self, session: Session, reader_id: int) -> List[IssueRecord]:
        issues = (
            session.query(IssueORM)
            .filter(IssueORM.reader_id == reader_id)
            .order_by(IssueORM.issue_date.desc(), IssueORM.id.desc())
            .all()
        )
        return [_issue_from_orm(i) for i in issues]

    def count_issued(self, session: Session, book_id: int) -> int:
        return (
            session.query(func.count(IssueORM.id))
            .filter(IssueORM.book_id == book_id, IssueORM.status == IssueStatus.ISSUED.value)
            .scalar()
            or 0
        )

    def mark_returned(self, session: Session, issue_id: int, approver_id: int, when: datetime) -> bool:
        updated = (
            session.query(IssueORM)
            .filter(IssueORM.id == issue_id, IssueORM.status == IssueStatus.ISSUED.value)
            .update(
                {
                    IssueORM.status: IssueStatus.RETURNED.value,
                    IssueORM.return_date: when,
                    IssueORM.return_approver_id: approver_id,
                },
                synchronize_session=False,
            )
        )
        return updated == 1
