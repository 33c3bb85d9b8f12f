"""
Library and user directory repositories backed by SQLAlchemy.
"""
from typing import List, Optional
from sqlalchemy.orm import Session

from domain.models import Library, Role, User
from repositories.models import LibraryORM, UserORM


def _library_from_orm(orm: LibraryORM) -> Library:
    return Library(id=orm.id, name=orm.name)


def _user_from_orm(orm: UserORM) -> User:
    return User(
        id=orm.id,
        name=orm.name,
        email=orm.email,
        role=Role(orm.role),
        library_id=orm.library_id,
        contact_number=orm.contact_number,
        password_hash=orm.password_hash,
    )


class LibrariesRepository:
    """CRUD operations for libraries."""

    def create_library(self, session: Session, library: Library) -> Library:
        orm = LibraryORM(id=library.id, name=library.name)
        session.add(orm)
        session.flush()
        return _library_from_orm(orm)

    def get_library(self, session: Session, library_id: int) -> Optional[Library]:
        orm = session.get(LibraryORM, library_id)
        return _library_from_orm(orm) if orm else None

    def get_by_name(self, session: Session, name: str) -> Optional[Library]:
        orm = (
            session.query(LibraryORM)
            .filter(LibraryORM.name == name)
            .order_by(LibraryORM.id)
            .first()
        )
        return _library_from_orm(orm) if orm else None


class UsersRepository:
    """CRUD operations for users."""

    def create_user(self, session: Session, user: User) -> User:
        orm = UserORM(
            name=user.name,
            email=user.email,
            contact_number=user.contact_number,
            password_hash=user.password_hash,
            role=user.role.value,
            library_id=user.library_id,
        )
        session.add(orm)
        session.flush()
        return _user_from_orm(orm)

    def get_user(self, session: Session, user_id: int) -> Optional[User]:
        orm = session.get(UserORM, user_id)
        return _user_from_orm(orm) if orm else None

    def get_by_email(self, session: Session, email: str) -> Optional[User]:
        orm = session.query(UserORM).filter(UserORM.email == email).first()
        return _user_from_orm(orm) if orm else None

    def find_by_role(self, session: Session, library_id: int, role: Role) -> List[User]:
        users = (
            session.query(UserORM)
            .filter(UserORM.library_id == library_id, UserORM.role == role.value)
            .order_by(UserORM.id)
            .all()
        )
        return [_user_from_orm(u) for u in users]
