"""Stage registry: build stages from configuration names.

Pipelines are configured with stage names (and optional constructor
arguments) rather than classes, so they can come from settings or request
parameters. Unknown names and bad arguments fail when the stage is added,
never while reconciling.
"""

from collections.abc import Callable

from reconciler.errors import StageConfigurationError
from reconciler.stages.base import IdentityStore, SearchIndex, Stage
from reconciler.stages.composite import CompositeStage
from reconciler.stages.exact_link import ExactLinkStage
from reconciler.stages.index_search import (
    CompleteSearchStage,
    FuzzyNameSearchStage,
    OriginalNameSearchStage,
    PreferredNameSearchStage,
)
from reconciler.stages.scoring import (
    DegreeBonusStage,
    EntityTypeFilterStage,
    OriginalLengthDifferenceStage,
    OriginalLengthStage,
)

StageFactory = Callable[..., Stage]
"""Called as ``factory(registry, *args, **kwargs)``."""

COMPOSITE = "composite"


class StageRegistry:
    """Maps stage names to factories.

    Holds the collaborators (search index, identity store) that
    pool-building stages are constructed with.
    """

    def __init__(
        self,
        search_index: SearchIndex | None = None,
        identity_store: IdentityStore | None = None,
    ):
        """Initialize an empty registry.

        Args:
            search_index: Index client for index-backed stages
            identity_store: Store for the exact-link stage
        """
        self.search_index = search_index
        self.identity_store = identity_store
        self._factories: dict[str, StageFactory] = {}

    def register(self, name: str, factory: StageFactory) -> None:
        """Register a factory under a stage name.

        Raises:
            StageConfigurationError: If the name is already taken
        """
        if name in self._factories:
            raise StageConfigurationError(f"Stage '{name}' is already registered")
        self._factories[name] = factory

    def names(self) -> list[str]:
        """Registered stage names in registration order."""
        return list(self._factories)

    def __contains__(self, name: object) -> bool:
        return name in self._factories

    def create(self, name: str, *args, **kwargs) -> Stage:
        """Build a stage by name.

        Args:
            name: Registered stage name
            *args: Positional constructor arguments (sub-stage names for
                composite stages)
            **kwargs: Keyword constructor arguments

        Returns:
            Configured stage

        Raises:
            StageConfigurationError: Unknown name, missing collaborator or
                malformed arguments
        """
        factory = self._factories.get(name)
        if factory is None:
            known = ", ".join(sorted(self._factories))
            raise StageConfigurationError(
                f"Unknown stage '{name}'. Known stages: {known}"
            )
        try:
            return factory(self, *args, **kwargs)
        except StageConfigurationError:
            raise
        except (TypeError, ValueError) as e:
            raise StageConfigurationError(
                f"Invalid arguments for stage '{name}': {e}"
            ) from e

    def require_search_index(self) -> SearchIndex:
        if self.search_index is None:
            raise StageConfigurationError("Index-backed stages need a search index")
        return self.search_index

    def require_identity_store(self) -> IdentityStore:
        if self.identity_store is None:
            raise StageConfigurationError("Exact-link stage needs an identity store")
        return self.identity_store


def _index_factory(stage_class: type) -> StageFactory:
    def factory(registry: StageRegistry, **kwargs) -> Stage:
        return stage_class(registry.require_search_index(), **kwargs)

    return factory


def _composite_factory(registry: StageRegistry, *sub_stages: str | Stage) -> Stage:
    if not sub_stages:
        raise StageConfigurationError("Composite stage needs at least one sub-stage")
    stages = [
        sub if isinstance(sub, Stage) else registry.create(sub) for sub in sub_stages
    ]
    return CompositeStage(*stages)


def default_registry(
    search_index: SearchIndex | None = None,
    identity_store: IdentityStore | None = None,
) -> StageRegistry:
    """Registry with every built-in stage.

    Args:
        search_index: Index client for index-backed stages
        identity_store: Store for the exact-link stage

    Returns:
        Populated StageRegistry
    """
    registry = StageRegistry(search_index=search_index, identity_store=identity_store)
    registry.register(
        ExactLinkStage.stage_name,
        lambda r, *args, **kwargs: ExactLinkStage(
            r.require_identity_store(), *args, **kwargs
        ),
    )
    for stage_class in (
        OriginalNameSearchStage,
        PreferredNameSearchStage,
        FuzzyNameSearchStage,
        CompleteSearchStage,
    ):
        registry.register(stage_class.stage_name, _index_factory(stage_class))
    for stage_class in (
        EntityTypeFilterStage,
        OriginalLengthStage,
        OriginalLengthDifferenceStage,
        DegreeBonusStage,
    ):
        registry.register(
            stage_class.stage_name,
            lambda r, *args, _cls=stage_class, **kwargs: _cls(*args, **kwargs),
        )
    registry.register(COMPOSITE, _composite_factory)
    return registry
