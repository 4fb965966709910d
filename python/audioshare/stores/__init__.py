"""Persistence stores.

Each store is a set of module-level functions taking a SQLAlchemy Session
first. Stores raise audioshare.stores.errors exceptions, never API errors.

- sessions: token per user (SessionStore)
- users: registration, credentials, directory
- grants: sharing relation and ownership predicate (GrantStore)
- catalog: track metadata, read resolution, shared-by view (CatalogStore)
- visibility: paged access-controlled listing (VisibilityQueryEngine)
"""
