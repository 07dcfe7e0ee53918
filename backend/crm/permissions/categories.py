# Overview: Role, resource and action vocabularies for the permission matrix.

from enum import Enum


class Role(str, Enum):
    BUSINESS_ADMIN = "BUSINESS_ADMIN"
    FLOOR_MANAGER = "FLOOR_MANAGER"
    SALESPERSON = "SALESPERSON"


class Resource(str, Enum):
    """Resource categories used for grouping actions."""
    CUSTOMERS = "customers"
    SALES = "sales"
    PRODUCTS = "products"
    FLOORS = "floors"
    TEAM = "team"
    ANALYTICS = "analytics"
    SETTINGS = "settings"
    APPROVALS = "approvals"
    ESCALATIONS = "escalations"
    AUDIT = "audit"


class Action(str, Enum):
    READ = "READ"
    READ_OWN = "READ_OWN"
    READ_FLOOR_ONLY = "READ_FLOOR_ONLY"
    READ_OWN_ONLY = "READ_OWN_ONLY"
    CREATE = "CREATE"
    CREATE_PENDING = "CREATE_PENDING"
    UPDATE = "UPDATE"
    UPDATE_PENDING = "UPDATE_PENDING"
    DELETE = "DELETE"
    APPROVE = "APPROVE"
    REJECT = "REJECT"
    ESCALATE = "ESCALATE"
    REQUEST = "REQUEST"
    MANAGE = "MANAGE"
    EXPORT = "EXPORT"
    CONFIGURE = "CONFIGURE"
    ASSIGN = "ASSIGN"
    RESOLVE = "RESOLVE"
    CLOSE = "CLOSE"
