"""
Servicio: Usuarios
backoffice/services/users.py
"""

from backoffice.models import User
from backoffice.services.base import ResourceService


class UserService(ResourceService[User]):
    path = "users/"
    model = User
