"""ORM models for the splitledger domain."""

from splitledger.db.models.expense import Expense, ExpenseParticipant
from splitledger.db.models.group import Group, GroupMember, MemberRole
from splitledger.db.models.settlement import Settlement
from splitledger.db.models.user import User

__all__ = [
    "Expense",
    "ExpenseParticipant",
    "Group",
    "GroupMember",
    "MemberRole",
    "Settlement",
    "User",
]
