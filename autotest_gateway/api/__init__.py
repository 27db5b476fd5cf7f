"""AutoTest gateway HTTP API.

This package provides the Falcon Asynchronous Server Gateway Interface
(ASGI) application: the public GitHub webhook endpoint and the operator
endpoints for artifacts and container images.

Usage
-----
Create the application::

    from autotest_gateway.api import create_app

    app = create_app()
"""

from autotest_gateway.api.app import AppDependencies, create_app

__all__ = ["AppDependencies", "create_app"]
