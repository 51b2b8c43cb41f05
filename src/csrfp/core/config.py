# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Config — layered csrfp settings from packaged defaults, files and env vars.

Keys use dot notation with the same kebab-case names as the files
(``csrfp.failed-auth-action.POST``).  Precedence, highest first:

1. ``CSRFP_*`` environment variables (see :meth:`Config.env_key`)
2. profile overlays ``csrfp-<profile>.yaml|toml``, later profiles winning
3. ``csrfp.yaml|toml`` in the base directory, then in ``<base>/config``
4. the packaged ``csrfp-defaults.yaml``

String values may contain ``${NAME}``, ``${other.key}`` or
``${NAME:fallback}`` placeholders, resolved when read.
"""

from __future__ import annotations

import importlib.resources
import os
import re
import tomllib
from collections.abc import Callable, Iterable, Iterator
from pathlib import Path
from typing import Any, TypeVar

import yaml  # type: ignore[import-untyped]
from pydantic import BaseModel, ValidationError

from csrfp.kernel.exceptions import ConfigurationException

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)

_PREFIX_ATTR = "__csrfp_config_prefix__"
_PLACEHOLDER = re.compile(r"\$\{([^}]+)\}")
_STEM = "csrfp"
_DEFAULTS = "csrfp-defaults.yaml"
_SUFFIXES = (".yaml", ".toml")


def config_properties(prefix: str) -> Callable[[type[T]], type[T]]:
    """Attach the config section *prefix* to a pydantic model for :meth:`Config.bind`."""

    def mark(cls: type[T]) -> type[T]:
        setattr(cls, _PREFIX_ATTR, prefix)
        return cls

    return mark


def _read(path: Path) -> dict[str, Any]:
    if path.suffix == ".toml":
        with path.open("rb") as fh:
            return tomllib.load(fh)
    with path.open(encoding="utf-8") as fh:
        return yaml.safe_load(fh) or {}


def _merge(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    out = dict(base)
    for key, value in overlay.items():
        if isinstance(value, dict) and isinstance(out.get(key), dict):
            out[key] = _merge(out[key], value)
        else:
            out[key] = value
    return out


def _named(directory: Path, stem: str) -> Iterator[Path]:
    for suffix in _SUFFIXES:
        candidate = directory / f"{stem}{suffix}"
        if candidate.is_file():
            yield candidate


class Config:
    """Read-only view over merged configuration data."""

    def __init__(self, data: dict[str, Any] | None = None, sources: Iterable[str] = ()) -> None:
        self._data: dict[str, Any] = data or {}
        self._sources = list(sources)

    @property
    def loaded_sources(self) -> list[str]:
        """Files that contributed, lowest precedence first."""
        return list(self._sources)

    # -- loading ------------------------------------------------------------

    @classmethod
    def from_sources(
        cls,
        base_dir: str | Path,
        active_profiles: list[str] | None = None,
        load_defaults: bool = True,
    ) -> Config:
        """Merge ``csrfp.*`` and ``csrfp-<profile>.*`` found in *base_dir* and ``base_dir/config``."""
        base_dir = Path(base_dir)
        search = (base_dir / "config", base_dir)
        layers = [p for d in search for p in _named(d, _STEM)]
        for profile in active_profiles or ():
            layers += [p for d in search for p in _named(d, f"{_STEM}-{profile}")]
        return cls._assemble(layers, load_defaults)

    @classmethod
    def from_file(
        cls,
        path: str | Path,
        active_profiles: list[str] | None = None,
        load_defaults: bool = True,
    ) -> Config:
        """Load one file and its ``<stem>-<profile>`` siblings.

        ``csrfp.yaml`` and ``csrfp-*.yaml`` defer to :meth:`from_sources`
        on the file's directory.
        """
        path = Path(path)
        if path.stem == _STEM or path.stem.startswith(f"{_STEM}-"):
            return cls.from_sources(path.parent, active_profiles, load_defaults)

        layers: list[Path] = []
        if path.is_file():
            layers.append(path)
            for profile in active_profiles or ():
                overlay = path.with_name(f"{path.stem}-{profile}{path.suffix}")
                if overlay.is_file():
                    layers.append(overlay)
        return cls._assemble(layers, load_defaults)

    @classmethod
    def _assemble(cls, layers: list[Path], load_defaults: bool) -> Config:
        data: dict[str, Any] = {}
        sources: list[str] = []
        if load_defaults:
            resource = importlib.resources.files("csrfp.resources").joinpath(_DEFAULTS)
            data = yaml.safe_load(resource.read_text(encoding="utf-8")) or {}
            sources.append(f"{_DEFAULTS} (packaged)")
        for layer in layers:
            data = _merge(data, _read(layer))
            sources.append(str(layer))
        return cls(data, sources)

    # -- lookup -------------------------------------------------------------

    @staticmethod
    def env_key(key: str) -> str:
        """``csrfp.session.cookie-name`` -> ``CSRFP_SESSION_COOKIE_NAME``."""
        return "CSRFP_" + key.removeprefix(f"{_STEM}.").replace(".", "_").replace("-", "_").upper()

    def get(self, key: str, default: Any = None) -> Any:
        """Value at *key*, or *default* when neither env nor data set it.

        Raises:
            ConfigurationException: A placeholder cannot be resolved or refers
                back to itself (code ``CONFIG_PLACEHOLDER``).
        """
        override = os.environ.get(self.env_key(key))
        if override is not None:
            return override
        value = self._lookup(key)
        if value is None:
            return default
        if isinstance(value, str):
            return self._expand(value, (key,))
        return value

    def get_section(self, prefix: str) -> dict[str, Any]:
        """The mapping at *prefix*, or ``{}``. Env overrides are not applied."""
        section = self._lookup(prefix)
        return section if isinstance(section, dict) else {}

    def _lookup(self, key: str) -> Any:
        node: Any = self._data
        for part in key.split("."):
            if not isinstance(node, dict):
                return None
            node = node.get(part)
        return node

    def _expand(self, value: str, chain: tuple[str, ...]) -> str:
        def substitute(match: re.Match[str]) -> str:
            name, sep, fallback = match.group(1).partition(":")
            from_env = os.environ.get(name)
            if from_env is not None:
                return from_env
            if name in chain:
                raise ConfigurationException(
                    f"Circular placeholder reference: {' -> '.join((*chain, name))}",
                    code="CONFIG_PLACEHOLDER",
                )
            found = self._lookup(name)
            if found is not None:
                return self._expand(str(found), (*chain, name))
            if sep:
                return fallback
            raise ConfigurationException(
                f"Cannot resolve placeholder '${{{name}}}' in '{chain[0]}'",
                code="CONFIG_PLACEHOLDER",
            )

        return _PLACEHOLDER.sub(substitute, value)

    # -- binding ------------------------------------------------------------

    def bind(self, model: type[M]) -> M:
        """Validate the section named by ``@config_properties`` into *model*.

        Raises:
            ConfigurationException: ``CONFIG_UNBOUND`` if *model* has no
                prefix, ``CONFIG_INVALID`` if validation fails.
        """
        prefix = getattr(model, _PREFIX_ATTR, None)
        if prefix is None:
            raise ConfigurationException(
                f"{model.__name__} has no @config_properties prefix",
                code="CONFIG_UNBOUND",
            )
        try:
            return model.model_validate(self.get_section(prefix))
        except ValidationError as exc:
            raise ConfigurationException(
                f"Invalid '{prefix}' configuration for {model.__name__}:\n{exc}",
                code="CONFIG_INVALID",
                context={"prefix": prefix},
            ) from exc
