"""
Registers every ORM model on the shared metadata.

Alembic and the relationship resolver both need all mapped classes imported,
so anything that touches the full schema imports this package first.
"""

from src.script.models import Script as Script
from src.user.models import User as User
