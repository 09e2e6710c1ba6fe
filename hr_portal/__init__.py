"""HR Portal desktop client: employment wizard, draft cache and API transport."""

__version__ = "0.1.0"
