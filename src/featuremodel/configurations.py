"""
Configuration Store

A named map of Configurations plus exactly one "current" pointer.

The store does not own the map: it wraps the FeatureModel's
`configurations` dict by reference, so edits made here are edits
to the model. Switching is O(1); configurations keep their own
resolved ternaries and nothing is recomputed on switch.

The store never leaves itself with zero configurations on its own
initiative, but remove() can empty it; the manager immediately
synthesizes a replacement in that case.
"""

from typing import Dict, Iterable, Iterator, List, Optional

from featuremodel.errors import ConfigurationNotFoundError, StructuralError
from featuremodel.model import Configuration, FeatureSelection, blank_configuration


class ConfigurationStore:
    """Named configurations with an explicit current selection."""

    def __init__(self, configurations: Dict[str, Configuration]):
        self._configurations = configurations
        self._current: Optional[str] = None
        self._pick_first_available()

    def _pick_first_available(self) -> None:
        self._current = next(iter(self._configurations), None)

    def __len__(self) -> int:
        return len(self._configurations)

    def __contains__(self, name: str) -> bool:
        return name in self._configurations

    def __iter__(self) -> Iterator[Configuration]:
        return iter(self._configurations.values())

    def names(self) -> List[str]:
        return list(self._configurations)

    @property
    def current_name(self) -> Optional[str]:
        return self._current

    @property
    def current(self) -> Configuration:
        """
        The active configuration.

        Raises:
            ConfigurationNotFoundError: If the store is empty
        """
        if self._current is None:
            raise ConfigurationNotFoundError("there are no configurations")
        return self._configurations[self._current]

    def get(self, name: str) -> Configuration:
        config = self._configurations.get(name)
        if config is None:
            raise ConfigurationNotFoundError(f"unknown configuration: {name}")
        return config

    def switch_to(self, name: str) -> Configuration:
        config = self.get(name)
        self._current = name
        return config

    def _check_available(self, name: str) -> None:
        if name in self._configurations:
            raise StructuralError(f"duplicate configuration name: {name}")

    def create(self, name: str, feature_ids: Iterable[str]) -> Configuration:
        """New configuration with a blank ternary pair for every feature."""
        self._check_available(name)
        config = blank_configuration(name, list(feature_ids))
        self._configurations[name] = config
        if self._current is None:
            self._current = name
        return config

    def duplicate(self, name: str) -> Configuration:
        """Deep copy of the current configuration under a new name."""
        self._check_available(name)
        config = self.current.deep_copy(name=name)
        self._configurations[name] = config
        return config

    def remove(self, name: str) -> Configuration:
        """Delete a configuration; if it was current, fall back to the first remaining one."""
        config = self.get(name)
        del self._configurations[name]
        if self._current == name:
            self._pick_first_available()
        return config

    def remove_current(self) -> Configuration:
        return self.remove(self.current.name)

    def rename_current(self, name: str) -> Configuration:
        """Re-key the current configuration, keeping its position in the map."""
        config = self.current
        old = config.name
        if name == old:
            return config
        self._check_available(name)
        entries = list(self._configurations.items())
        self._configurations.clear()
        for key, value in entries:
            self._configurations[name if key == old else key] = value
        config.name = name
        self._current = name
        return config

    # -------------------------------------------------------------------------
    # Keeping every configuration in sync with the feature set
    # -------------------------------------------------------------------------

    def ensure_feature(self, feature_id: str) -> None:
        for config in self._configurations.values():
            config.features.setdefault(feature_id, FeatureSelection())

    def discard_feature(self, feature_id: str) -> None:
        for config in self._configurations.values():
            config.features.pop(feature_id, None)

    def rename_feature(self, old: str, new: str) -> None:
        for config in self._configurations.values():
            selection = config.features.pop(old, None) or FeatureSelection()
            config.features[new] = selection

    def rebind(self, configurations: Dict[str, Configuration]) -> None:
        """Point the store at a different map, keeping the current name when possible."""
        self._configurations = configurations
        if self._current not in configurations:
            self._pick_first_available()
