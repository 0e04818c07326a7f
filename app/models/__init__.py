"""Database models — re-exports all models.

Import from here:  from app.models import Client, ClientIntegration
Or from submodules: from app.models.client import Client
"""

from .base import Base  # noqa: F401

# Clients & their portal content
from .client import Client  # noqa: F401

# Third-party integrations
from .integration import PROVIDERS, ClientIntegration  # noqa: F401
