"""
FastAPI dependencies.

The service graph is built once per process. Tests replace it with
`app.dependency_overrides[get_services] = lambda: services`.
"""

from functools import lru_cache

from services.container import Services, build_services


@lru_cache(maxsize=1)
def get_services() -> Services:
    return build_services()
