"""
Owner-scoped CRUD resources: table definitions, Postgres model, controller
and HTTP router.
"""
