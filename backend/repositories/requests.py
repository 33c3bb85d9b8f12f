"""
Request ledger repository backed by SQLAlchemy.
"""
from datetime import datetime
from typing import List, Optional
from sqlalchemy.orm import Session

from domain.models import IssueRequest, RequestStatus, RequestType
from repositories.models import RequestORM


def _request_from_orm(orm: RequestORM) -> IssueRequest:
    return IssueRequest(
        id=orm.id,
        book_id=orm.book_id,
        library_id=orm.library_id,
        isbn=orm.isbn,
        reader_id=orm.reader_id,
        request_date=orm.request_date,
        request_type=RequestType(orm.request_type),
        status=RequestStatus(orm.status),
        approval_date=orm.approval_date,
        approver_id=orm.approver_id,
    )


class RequestsRepository:
    """Append-only ledger of reader requests; rows change only when resolved."""

    def insert(self, session: Session, request: IssueRequest) -> IssueRequest:
        orm = RequestORM(
            book_id=request.book_id,
            library_id=request.library_id,
            isbn=request.isbn,
            reader_id=request.reader_id,
            request_date=request.request_date or datetime.utcnow(),
            request_type=request.request_type.value,
            status=RequestStatus.PENDING.value,
        )
        session.add(orm)
        session.flush()
        return _request_from_orm(orm)

    def get(self, session: Session, request_id: int, for_update: bool = False) -> Optional[IssueRequest]:
        query = (
            session.query(RequestORM)
            .filter(RequestORM.id == request_id)
            .populate_existing()
        )
        if for_update:
            query = query.with_for_update()
        orm = query.first()
        return _request_from_orm(orm) if orm else None

    def get_pending(
        self,
        session: Session,
        library_id: Optional[int] = None,
        reader_id: Optional[int] = None,
        book_id: Optional[int] = None,
    ) -> List[IssueRequest]:
        """Pending requests, oldest first, narrowed by any filter given."""
        query = session.query(RequestORM).filter(
            RequestORM.status == RequestStatus.PENDING.value,
            RequestORM.approver_id.is_(None),
        )
        if library_id is not None:
            query = query.filter(RequestORM.library_id == library_id)
        if reader_id is not None:
            query = query.filter(RequestORM.reader_id == reader_id)
        if book_id is not None:
            query = query.filter(RequestORM.book_id == book_id)
        return [_request_from_orm(r) for r in query.order_by(RequestORM.id).all()]

    def list_for_library(
        self, session: Session, library_id: int, status: Optional[RequestStatus] = None
    ) -> List[IssueRequest]:
        query = session.query(RequestORM).filter(
            RequestORM.library_id == library_id,
            RequestORM.request_type == RequestType.ISSUE.value,
        )
        if status:
            query = query.filter(RequestORM.status == status.value)
        return [_request_from_orm(r) for r in query.order_by(RequestORM.id).all()]

    def _resolve(
        self,
        session: Session,
        request_id: int,
        approver_id: int,
        when: datetime,
        status: RequestStatus,
    ) -> bool:
        # Only a pending row matches, so a request is resolved at most once
        updated = (
            session.query(RequestORM)
            .filter(
                RequestORM.id == request_id,
                RequestORM.status == RequestStatus.PENDING.value,
                RequestORM.approver_id.is_(None),
            )
            .update(
                {
                    RequestORM.approver_id: approver_id,
                    RequestORM.approval_date: when,
                    RequestORM.status: status.value,
                },
                synchronize_session=False,
            )
        )
        return updated == 1

    def mark_approved(self, session: Session, request_id: int, approver_id: int, when: datetime) -> bool:
        return self._resolve(session, request_id, approver_id, when, RequestStatus.APPROVED)

    def mark_rejected(self, session: Session, request_id: int, approver_id: int, when: datetime) -> bool:
        return self._resolve(session, request_id, approver_id, when, RequestStatus.REJECTED)
