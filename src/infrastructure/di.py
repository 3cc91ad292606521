"""Dependency Injection container."""

from typing import Optional

from src.adapters.llm.litellm_adapter import LiteLLMGateway
from src.domain.interfaces import IIntakeService, ILLMGateway, IWizardSessionStore
from src.domain.use_cases import IntakeUseCases
from src.infrastructure.memory.session_store import InMemoryWizardSessionStore
from src.intake_engine.heuristics import PlaceholderEvaluator


class DIContainer:
    """Simple dependency injection container."""

    def __init__(self):
        """Initialize container with empty slots, filled on first use."""
        self._llm_gateway: Optional[ILLMGateway] = None
        self._placeholder: Optional[PlaceholderEvaluator] = None
        self._intake_use_cases: Optional[IIntakeService] = None
        self._session_store: Optional[IWizardSessionStore] = None

    def get_llm_gateway(self) -> ILLMGateway:
        """Get LLM gateway adapter.

        Returns:
            LiteLLMGateway instance.
        """
        if self._llm_gateway is None:
            self._llm_gateway = LiteLLMGateway()
        return self._llm_gateway

    def get_placeholder_evaluator(self) -> PlaceholderEvaluator:
        """Get the heuristic evaluator used when the model is unavailable."""
        if self._placeholder is None:
            self._placeholder = PlaceholderEvaluator()
        return self._placeholder

    def get_intake_use_cases(self) -> IIntakeService:
        """Get intake use cases.

        Returns:
            IntakeUseCases wired to the gateway and placeholder evaluator.
        """
        if self._intake_use_cases is None:
            self._intake_use_cases = IntakeUseCases(
                gateway=self.get_llm_gateway(),
                placeholder=self.get_placeholder_evaluator(),
            )
        return self._intake_use_cases

    def get_session_store(self) -> IWizardSessionStore:
        """Get wizard session store instance."""
        if self._session_store is None:
            self._session_store = InMemoryWizardSessionStore(self.get_intake_use_cases)
        return self._session_store


# Global container instance
_container: Optional[DIContainer] = None


def get_container() -> DIContainer:
    """Get global DI container instance.

    Returns:
        DIContainer instance.
    """
    global _container
    if _container is None:
        _container = DIContainer()
    return _container


def reset_container() -> None:
    """Drop the global container so the next call rebuilds it."""
    global _container
    _container = None
