"""Colaboradores locais de storage e otimização física."""

from .local_database import LocalDatabase  # noqa: F401
from .post_processor import LocalPostProcessor  # noqa: F401
