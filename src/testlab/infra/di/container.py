# infra/di/container.py

from dependency_injector import containers, providers
from fastapi import Depends

from ...adapters.repository.json_file_test_lab_repository import (
    JsonFileTestLabRepository,
)
from ...application.services.test_suite_service import TestSuiteService
from ...domain.ports.test_lab_repository import TestLabRepositoryInterface
from ...tools.flow_runner import FlowRunnerTool
from ...tools.rest_api_caller import RestApiCallerTool
from ...tools.test_suite_runner import TestSuiteRunnerTool


class Container(containers.DeclarativeContainer):
    """Dependency injection container for the application."""

    # Configuration
    config = providers.Configuration()

    # Repositories
    test_lab_repository: providers.Singleton[TestLabRepositoryInterface] = (
        providers.Singleton(
            JsonFileTestLabRepository,
            data_dir=config.repository.data_dir,
        )
    )

    # Tools
    rest_api_caller: providers.Singleton[RestApiCallerTool] = providers.Singleton(
        RestApiCallerTool,
        config=providers.Dict(
            timeout=config.http.timeout,
            verify_ssl=config.http.verify_ssl,
            follow_redirects=config.http.follow_redirects,
        ),
    )

    flow_runner: providers.Singleton[FlowRunnerTool] = providers.Singleton(
        FlowRunnerTool, http_executor=rest_api_caller
    )

    # One runner per suite run state
    test_suite_runner: providers.Factory[TestSuiteRunnerTool] = providers.Factory(
        TestSuiteRunnerTool,
        http_executor=rest_api_caller,
        flow_executor=flow_runner,
    )

    # Services
    test_suite_service: providers.Singleton[TestSuiteService] = providers.Singleton(
        TestSuiteService,
        repository=test_lab_repository,
        runner_factory=test_suite_runner.provider,
    )


# Global container instance
_container: Container = None


def get_container() -> Container:
    """Get the configured container instance."""
    global _container
    if _container is None:
        _container = Container()
    return _container


def get_test_suite_service() -> TestSuiteService:
    """Get TestSuiteService instance from DI container."""
    return get_container().test_suite_service()


# FastAPI dependency providers
test_suite_service_dependency = Depends(get_test_suite_service)
