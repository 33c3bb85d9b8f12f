"""
Library and user accounts: creation, password checks and the bootstrap owner.
"""
import logging
from typing import Optional

import bcrypt
from sqlalchemy.orm import sessionmaker

from domain.errors import DuplicateUser, LibraryNotFound, OwnerExists, UserNotFound
from domain.models import Library, Role, User
from repositories import LibrariesRepository, UsersRepository
from settings import settings

logger = logging.getLogger(__name__)

DEFAULT_LIBRARY_NAME = "Main Library"
DEFAULT_OWNER_NAME = "Root"
DEFAULT_OWNER_CONTACT = "1234567890"
BCRYPT_ROUNDS = settings.BCRYPT_ROUNDS


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


class AccountsService:
    def __init__(
        self,
        session_factory: sessionmaker,
        libraries_repo: Optional[LibrariesRepository] = None,
        users_repo: Optional[UsersRepository] = None,
    ):
        self.session_factory = session_factory
        self.libraries_repo = libraries_repo or LibrariesRepository()
        self.users_repo = users_repo or UsersRepository()

    def create_library(self, name: str) -> Library:
        with self.session_factory.begin() as session:
            library = self.libraries_repo.create_library(session, Library(id=None, name=name))
        logger.info("Library %s created: %s", library.id, library.name)
        return library

    def get_library(self, library_id: int) -> Optional[Library]:
        with self.session_factory() as session:
            return self.libraries_repo.get_library(session, library_id)

    def create_user(
        self,
        name: str,
        email: str,
        password: str,
        role: Role,
        library_id: int,
        contact_number: str = "",
    ) -> User:
        """
        Create a user with a bcrypt-hashed password.

        Raises:
            LibraryNotFound: `library_id` does not exist
            DuplicateUser: the email is already registered
            OwnerExists: the library already has an owner
        """
        with self.session_factory.begin() as session:
            if self.libraries_repo.get_library(session, library_id) is None:
                raise LibraryNotFound()
            if self.users_repo.get_by_email(session, email) is not None:
                raise DuplicateUser()
            if role == Role.OWNER and self.users_repo.find_by_role(session, library_id, Role.OWNER):
                raise OwnerExists()
            user = self.users_repo.create_user(
                session,
                User(
                    id=None,
                    name=name,
                    email=email,
                    role=role,
                    library_id=library_id,
                    contact_number=contact_number,
                    password_hash=hash_password(password),
                ),
            )
        logger.info("User %s created with role %s in library %s", user.id, role.value, library_id)
        return user

    def get_user(self, user_id: int) -> User:
        with self.session_factory() as session:
            user = self.users_repo.get_user(session, user_id)
        if user is None:
            raise UserNotFound()
        return user

    def authenticate(self, email: str, password: str) -> Optional[User]:
        """Return the user if the email/password pair matches, else None."""
        with self.session_factory() as session:
            user = self.users_repo.get_by_email(session, email)
        if user is None or not verify_password(password, user.password_hash):
            return None
        return user

    def seed_default_owner(self, email: str, password: str) -> User:
        """
        Ensure the default library and its single owner exist. Safe to call on every start.

        The default library is looked up by name and gets a database-assigned id.
        When it already has an owner that owner is returned, whatever `email` is.
        """
        with self.session_factory.begin() as session:
            library = self.libraries_repo.get_by_name(session, DEFAULT_LIBRARY_NAME)
            if library is None:
                library = self.libraries_repo.create_library(
                    session, Library(id=None, name=DEFAULT_LIBRARY_NAME)
                )
            owners = self.users_repo.find_by_role(session, library.id, Role.OWNER)
            if owners:
                if owners[0].email != email:
                    logger.warning(
                        "Library %s already has owner %s; not seeding %s",
                        library.id, owners[0].email, email,
                    )
                return owners[0]
            if self.users_repo.get_by_email(session, email) is not None:
                raise DuplicateUser()
            owner = self.users_repo.create_user(
                session,
                User(
                    id=None,
                    name=DEFAULT_OWNER_NAME,
                    email=email,
                    role=Role.OWNER,
                    library_id=library.id,
                    contact_number=DEFAULT_OWNER_CONTACT,
                    password_hash=hash_password(password),
                ),
            )
        logger.info("Default owner %s created for library %s", email, library.id)
        return owner
