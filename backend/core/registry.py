# core/registry.py — Provider registry shared by the app factory and modules
#
# create_app() registers the process-wide services (job tracker, bulk runner)
# before any module loads. Modules declare what they need in REQUIRES and
# look it up here from their register() hook.

import logging
from typing import Any, Dict, List, Tuple

log = logging.getLogger("printvault.registry")


class MissingProviderError(LookupError):
    """Raised by require() when no provider is registered under a name."""


class ModuleRegistry:
    """
    Named providers plus the REQUIRES declarations of loaded modules.

    get_provider() is lenient and returns None; require() raises. Call
    validate_dependencies() once every module has registered.
    """

    def __init__(self):
        self._providers: Dict[str, Any] = {}
        self._declared_requires: List[Tuple[str, str]] = []  # (module_id, provider name)

    def register_provider(self, name: str, impl: Any) -> None:
        existing = self._providers.get(name)
        if existing is not None and existing is not impl:
            log.warning(
                f"Provider '{name}' replaced: {type(existing).__name__} -> {type(impl).__name__}"
            )
        self._providers[name] = impl
        log.debug(f"Registered provider '{name}': {type(impl).__name__}")

    def get_provider(self, name: str) -> Any:
        provider = self._providers.get(name)
        if provider is None:
            log.warning(f"No provider registered for '{name}'")
        return provider

    def require(self, name: str) -> Any:
        try:
            return self._providers[name]
        except KeyError:
            raise MissingProviderError(f"No provider registered for '{name}'") from None

    def record_requires(self, module_id: str, requires: List[str]) -> None:
        for name in requires:
            self._declared_requires.append((module_id, name))

    def missing_dependencies(self) -> List[Tuple[str, str]]:
        return [(m, n) for m, n in self._declared_requires if n not in self._providers]

    def validate_dependencies(self) -> bool:
        """Log every unsatisfied REQUIRES entry. Returns True when none are missing."""
        missing = self.missing_dependencies()
        for module_id, name in missing:
            log.error(f"Unsatisfied dependency: module '{module_id}' requires '{name}'")
        if not missing:
            log.info(f"All module dependencies satisfied ({len(self._declared_requires)} checked)")
        return not missing

    @property
    def providers(self) -> Dict[str, Any]:
        return dict(self._providers)
