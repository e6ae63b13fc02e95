"""
API Layer - FastAPI routes and middleware.

Routers live in github_plugin.api.routes; the exception hierarchy in
github_plugin.api.middleware is imported by the services, so this
package does not import the routes eagerly.
"""
