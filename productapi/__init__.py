"""Product API: a product CRUD service with an integration-test environment."""

__version__ = "0.1.0"
