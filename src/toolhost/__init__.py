"""
toolhost - stdio JSON-RPC tool hosts for development workflows.

A tool host exposes a fixed set of tools and readable resources to a client
over line-delimited JSON-RPC 2.0 on stdin/stdout. Three hosts ship with it:
- backend: API endpoint testing, database queries, tests, migrations
- database: schema inspection, query analysis, indexes, maintenance
- devops: container status, logs, restarts, secrets, deployments

Example usage:
    $ toolhost serve backend
    $ toolhost tools database
    $ toolhost call backend check_api_health --args '{"url": "http://localhost:3000/health"}'
"""

__version__ = "0.1.0"
__author__ = "toolhost Contributors"

__all__ = [
    "__version__",
    "__author__",
]
