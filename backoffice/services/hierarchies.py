"""
Servicio: Jerarquías (Manager → Collection Officer)
backoffice/services/hierarchies.py
"""

from backoffice.models import Hierarchy
from backoffice.services.base import ResourceService


class HierarchyService(ResourceService[Hierarchy]):
    path = "hierarchies/"
    model = Hierarchy
