"""
Formularios: Usuario y Jerarquía
backoffice/forms/users.py
"""

from typing import ClassVar, Dict, Optional

from pydantic import Field

from backoffice.forms.base import Email, FormBase
from backoffice.models import UserRole


class UserUpdateForm(FormBase):
    username: str = Field(min_length=3)
    password: Optional[str] = Field(default=None, min_length=8)
    first_name: str
    last_name: str
    email: Email
    phone: Optional[str] = None
    role: UserRole = UserRole.COLLECTION_OFFICER
    is_active: bool = True

    required_messages: ClassVar[Dict[str, str]] = {
        "username": "Username is required",
        "first_name": "First name is required",
        "last_name": "Last name is required",
        "email": "Email is required",
    }

    @classmethod
    def initial(cls, entity) -> dict:
        valores = super().initial(entity)
        valores["password"] = ""
        return valores


class UserCreateForm(UserUpdateForm):
    password: str = Field(min_length=8)

    required_messages: ClassVar[Dict[str, str]] = {
        **UserUpdateForm.required_messages,
        "password": "Password is required",
    }


class HierarchyForm(FormBase):
    manager: str
    collection_officer: str

    required_messages: ClassVar[Dict[str, str]] = {
        "manager": "Manager is required",
        "collection_officer": "Collection officer is required",
    }

    def refine(self) -> Dict[str, str]:
        if self.manager == self.collection_officer:
            return {"collection_officer": "Manager and collection officer must be different users"}
        return {}
