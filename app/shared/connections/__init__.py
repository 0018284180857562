from . import aws
from .aws import AccountRegistry, load_accounts_file

__all__ = [
    "aws",
    "AccountRegistry",
    "load_accounts_file",
]
