from .books import BooksRepository
from .issues import IssuesRepository
from .libraries import LibrariesRepository, UsersRepository
from .requests import RequestsRepository
from . import models

__all__ = [
    "BooksRepository",
    "IssuesRepository",
    "LibrariesRepository",
    "RequestsRepository",
    "UsersRepository",
    "models",
]
