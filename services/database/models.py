"""
Pydantic Models for Reference Documents

Categories, vendors and the admin user are validated here before they are
written. Store documents use camelCase keys; Python code uses snake_case.
"""

import hashlib
import hmac
import os
from datetime import datetime, timezone
from typing import Optional, Dict, Any
from enum import Enum
from pydantic import BaseModel, Field, ConfigDict
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserRole(str, Enum):
    ADMIN = "admin"
    VENDOR = "vendor"
    CUSTOMER = "customer"


class DocumentModel(BaseModel):
    """Base for models stored as camelCase documents"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
    )

    def to_document(self) -> Dict[str, Any]:
        """Store document body (camelCase keys, id excluded)"""
        return self.model_dump(by_alias=True, exclude={'id'})


# ============================================
# Category Models
# ============================================

class Category(DocumentModel):
    id: str
    slug: str
    name: str
    name_ar: Optional[str] = None
    description: Optional[str] = None
    icon: Optional[str] = None
    is_active: bool = True
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


# ============================================
# Vendor Models
# ============================================

class Vendor(DocumentModel):
    id: str
    name: str
    slug: str
    name_ar: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    description: Optional[str] = None
    logo: Optional[str] = None
    is_active: bool = True
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


# ============================================
# User Models
# ============================================

PASSWORD_HASH_ITERATIONS = 260_000


def hash_password(password: str, salt: Optional[bytes] = None,
                  iterations: int = PASSWORD_HASH_ITERATIONS) -> str:
    """
    Salted PBKDF2-SHA256 hash in the form ``pbkdf2_sha256$iters$salt$hash``.
    """
    salt = salt or os.urandom(16)
    digest = hashlib.pbkdf2_hmac('sha256', password.encode('utf-8'), salt, iterations)
    return f"pbkdf2_sha256${iterations}${salt.hex()}${digest.hex()}"


def verify_password(password: str, encoded: str) -> bool:
    try:
        algorithm, iterations, salt_hex, digest_hex = encoded.split('$')
    except ValueError:
        return False
    if algorithm != 'pbkdf2_sha256':
        return False
    expected = hash_password(password, bytes.fromhex(salt_hex), int(iterations))
    return hmac.compare_digest(expected, encoded)


class AdminUser(DocumentModel):
    email: str = Field(..., min_length=3)
    first_name: str = "Admin"
    last_name: str = "User"
    role: UserRole = UserRole.ADMIN
    is_active: bool = True
    is_verified: bool = True
    password: str = Field(..., description="Salted password hash, never the plain password")
    last_login: Optional[datetime] = None
    login_attempts: int = 0
    lock_until: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @classmethod
    def create(cls, email: str, plain_password: str, **kwargs) -> "AdminUser":
        return cls(email=email.strip().lower(), password=hash_password(plain_password), **kwargs)

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)
