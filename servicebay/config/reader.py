"""
YAML configuration reader - layered sources with variable interpolation.

Merge order (later overrides earlier, top-level keys only):
1. Process-level variables passed by the caller
2. Bundled base resource ``conf/servicebay.yaml`` in ``resource_package``
3. Well-known filesystem locations (each optional)
4. The file named by ``SERVICEBAY_CONFIG_FILE``
5. Extra paths passed by the caller
"""

import logging
from importlib import resources
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

import yaml
from dotenv import dotenv_values

from ..errors import ConfigurationError
from .interpolation import Lookup, default_lookup, substitute_variables
from .store import ConfigurationStore


logger = logging.getLogger("servicebay.config")

CONFIG_FILE_VARIABLE = "SERVICEBAY_CONFIG_FILE"
RESOURCE_PATH = "conf/servicebay.yaml"

DEFAULT_CONFIG_PATHS = (
    "conf/servicebay.yaml",
    "/servicebay/servicebay.yaml",
    "/usr/local/servicebay/servicebay.yaml",
    "/opt/servicebay/servicebay.yaml",
    "/etc/servicebay/servicebay.yaml",
    "/etc/opt/servicebay/servicebay.yaml",
    "~/servicebay/servicebay.yaml",
)


class YAMLConfigReader:
    """
    Builds a ConfigurationStore from layered YAML files.

    Missing files are skipped. A file that exists but cannot be read,
    parsed or interpolated raises ConfigurationError naming the file.
    """

    def __init__(
        self,
        resource_package: Optional[str] = None,
        paths: Sequence[str] = DEFAULT_CONFIG_PATHS,
        extra_paths: Sequence[str] = (),
        variables: Optional[Mapping[str, str]] = None,
        env_file: Optional[str] = None,
    ):
        """
        Args:
            resource_package: Package holding a bundled ``conf/servicebay.yaml``
            paths: Well-known locations, checked in order
            extra_paths: Caller-supplied files, highest precedence
            variables: Process-level variables (lowest config layer and
                first interpolation source)
            env_file: Optional ``.env`` file feeding interpolation
        """
        self.resource_package = resource_package
        self.paths = list(paths)
        self.extra_paths = list(extra_paths)
        self.variables: Dict[str, str] = dict(variables or {})
        self.env_file = env_file
        self.mounted: List[str] = []

    def _make_lookup(self) -> Lookup:
        dotenv = None
        if self.env_file and Path(self.env_file).exists():
            dotenv = dotenv_values(self.env_file)
        return default_lookup(self.variables, dotenv)

    def _config_file_override(self, lookup: Lookup) -> Optional[str]:
        return lookup(CONFIG_FILE_VARIABLE)

    def read(self) -> ConfigurationStore:
        """Read every source and return the layered store."""
        lookup = self._make_lookup()
        layers: List[Mapping[str, Any]] = [self.variables]
        self.mounted = []

        if self.resource_package:
            text = self._read_resource(self.resource_package)
            if text is not None:
                source = f"{self.resource_package}:{RESOURCE_PATH}"
                layers.append(self.parse(text, lookup, source))
                self._mount(source)

        candidates = list(self.paths)
        override = self._config_file_override(lookup)
        if override:
            candidates.append(override)
        candidates.extend(self.extra_paths)

        for candidate in candidates:
            path = Path(candidate).expanduser()
            if not path.is_file():
                logger.debug(f"Config source not found: {path}")
                continue

            try:
                text = path.read_text(encoding="utf-8")
            except OSError as e:
                raise ConfigurationError(f"Cannot read config file: {e}", source=str(path)) from e

            layers.append(self.parse(text, lookup, str(path)))
            self._mount(str(path))

        return ConfigurationStore.layered(*layers)

    def _mount(self, source: str) -> None:
        self.mounted.append(source)
        logger.info(f"Mounted config: {source}")

    def _read_resource(self, package: str) -> Optional[str]:
        try:
            resource = resources.files(package).joinpath(RESOURCE_PATH)
            if not resource.is_file():
                return None
            return resource.read_text(encoding="utf-8")
        except ModuleNotFoundError:
            logger.debug(f"Resource package not importable: {package}")
            return None

    @staticmethod
    def parse(text: str, lookup: Lookup, source: str = "<string>") -> Dict[str, Any]:
        """
        Interpolate and parse one YAML source (multi-document allowed).

        Documents are merged top-level in order.
        """
        substituted = substitute_variables(text, lookup, source=source)

        try:
            documents: Iterable[Any] = list(yaml.safe_load_all(substituted))
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Malformed YAML: {e}", source=source) from e

        properties: Dict[str, Any] = {}
        for document in documents:
            if document is None:
                continue
            if not isinstance(document, dict):
                raise ConfigurationError(
                    f"Config document must be a mapping, got {type(document).__name__}",
                    source=source,
                )
            properties.update(document)
        return properties


def read_config(**kwargs: Any) -> ConfigurationStore:
    """Convenience wrapper: ``YAMLConfigReader(**kwargs).read()``."""
    return YAMLConfigReader(**kwargs).read()
