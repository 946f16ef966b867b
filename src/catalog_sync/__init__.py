"""Dynamic user provisioning for the software catalog.

Users discovered at sign-in are provisioned into the catalog through an
in-memory entity provider, and sign-in resolvers wait for the catalog to
converge before resolving the user.
"""

__version__ = "0.1.0"
