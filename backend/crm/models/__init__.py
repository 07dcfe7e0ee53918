from .tenancy import Store, Floor
from .auth import User, SessionToken
from .catalog import Category, Product
from .customers import Customer
from .sales import Sale
from .workflow import (
    ActionType,
    ApprovalStatus,
    Priority,
    EscalationStatus,
    ApprovalWorkflow,
    Escalation,
)
from .audit import AuditLog

__all__ = [
    'Store', 'Floor',
    'User', 'SessionToken',
    'Category', 'Product',
    'Customer',
    'Sale',
    'ActionType', 'ApprovalStatus', 'Priority', 'EscalationStatus',
    'ApprovalWorkflow', 'Escalation',
    'AuditLog',
]
