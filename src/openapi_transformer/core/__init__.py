"""Reading and writing OpenAPI documents."""
