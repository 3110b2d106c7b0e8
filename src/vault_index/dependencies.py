"""FastAPI dependency injection utilities."""

from typing import TYPE_CHECKING, Annotated

from fastapi import Depends, Request

from vault_index.config import Settings

if TYPE_CHECKING:
    from vault_index.services.engine import IndexEngine
    from vault_index.services.index_coordinator import IndexCoordinator
    from vault_index.services.search_service import SearchService


def get_engine(request: Request) -> "IndexEngine":
    """Get the engine created by the application lifespan.

    Returns:
        IndexEngine instance.
    """
    return request.app.state.engine


def get_app_settings(engine: Annotated["IndexEngine", Depends(get_engine)]) -> Settings:
    """Settings the running engine was built from."""
    return engine.settings


def get_search_service(
    engine: Annotated["IndexEngine", Depends(get_engine)],
) -> "SearchService":
    return engine.search_service


def get_coordinator(
    engine: Annotated["IndexEngine", Depends(get_engine)],
) -> "IndexCoordinator":
    return engine.coordinator


# Type aliases for dependency injection
SettingsDep = Annotated[Settings, Depends(get_app_settings)]
EngineDep = Annotated["IndexEngine", Depends(get_engine)]
SearchServiceDep = Annotated["SearchService", Depends(get_search_service)]
CoordinatorDep = Annotated["IndexCoordinator", Depends(get_coordinator)]
