"""Reference catalogs: products, in-store courses, lifestyle tips.

Catalogs are immutable configuration. The bundled YAML is loaded once; tests
and alternate deployments build their own ``Catalogs`` and inject them into
the composer and formatter.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_PATH = Path(__file__).resolve().parent.parent / "catalogs" / "default.yaml"

# Lifestyle catalog keys referenced by the composer
LIFESTYLE_SENSITIVE = "SENSITIVE"
LIFESTYLE_OILY = "OILY"
LIFESTYLE_THINNING = "THINNING"
LIFESTYLE_GENERAL = "GENERAL"


class CatalogError(Exception):
    """Raised when a catalog file is missing or malformed."""


@dataclass(frozen=True)
class ProductEntry:
    name: str
    efficacy: str
    usage: str


@dataclass(frozen=True)
class CourseEntry:
    name: str
    description: str
    duration: str


def _freeze(mapping: Mapping[str, Any] | None) -> Mapping[str, Any]:
    return MappingProxyType(dict(mapping or {}))


@dataclass(frozen=True)
class Catalogs:
    """Read-only lookup tables used when composing and formatting advice."""

    products: Mapping[str, ProductEntry] = field(default_factory=lambda: _freeze({}))
    courses: Mapping[str, CourseEntry] = field(default_factory=lambda: _freeze({}))
    lifestyle: Mapping[str, tuple[str, ...]] = field(default_factory=lambda: _freeze({}))
    version: str = ""

    def __post_init__(self) -> None:
        # Wrap whatever the caller passed so nobody can mutate it later.
        object.__setattr__(self, "products", _freeze(self.products))
        object.__setattr__(self, "courses", _freeze(self.courses))
        object.__setattr__(
            self,
            "lifestyle",
            _freeze({k: tuple(v) for k, v in dict(self.lifestyle).items()}),
        )

    def product(self, product_id: str) -> ProductEntry | None:
        return self.products.get(product_id)

    def course(self, course_id: str) -> CourseEntry | None:
        return self.courses.get(course_id)

    def tips(self, category: str) -> tuple[str, ...]:
        """Tips for a lifestyle category; empty when the category is unknown."""
        return self.lifestyle.get(category, ())

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "products": {
                pid: {"name": p.name, "efficacy": p.efficacy, "usage": p.usage}
                for pid, p in self.products.items()
            },
            "courses": {
                cid: {"name": c.name, "description": c.description, "duration": c.duration}
                for cid, c in self.courses.items()
            },
            "lifestyle": {key: list(tips) for key, tips in self.lifestyle.items()},
        }


def _require(entry: dict[str, Any], key: str, where: str) -> str:
    if not isinstance(entry, dict):
        raise CatalogError(f"Catalog entry {where} must be a mapping")
    value = entry.get(key)
    if value is None:
        raise CatalogError(f"Catalog entry {where} is missing required field {key!r}")
    return str(value).strip()


def parse_catalogs(data: dict[str, Any]) -> Catalogs:
    """Build ``Catalogs`` from a parsed YAML/JSON document."""
    if not isinstance(data, dict):
        raise CatalogError("Catalog document must be a mapping")

    products = {
        pid: ProductEntry(
            name=_require(entry, "name", f"products.{pid}"),
            efficacy=_require(entry, "efficacy", f"products.{pid}"),
            usage=_require(entry, "usage", f"products.{pid}"),
        )
        for pid, entry in (data.get("products") or {}).items()
    }
    courses = {
        cid: CourseEntry(
            name=_require(entry, "name", f"courses.{cid}"),
            description=_require(entry, "description", f"courses.{cid}"),
            duration=_require(entry, "duration", f"courses.{cid}"),
        )
        for cid, entry in (data.get("courses") or {}).items()
    }
    lifestyle: dict[str, tuple[str, ...]] = {}
    for key, tips in (data.get("lifestyle") or {}).items():
        if not isinstance(tips, list):
            raise CatalogError(f"Lifestyle category {key!r} must be a list of tips")
        lifestyle[key] = tuple(str(t).strip() for t in tips)

    return Catalogs(
        products=products,
        courses=courses,
        lifestyle=lifestyle,
        version=str(data.get("version", "")),
    )


def load_catalogs(path: str | Path) -> Catalogs:
    """Load catalogs from a YAML file.

    Raises:
        CatalogError: If the file is missing, unreadable, or malformed.
    """
    path = Path(path)
    if not path.is_file():
        raise CatalogError(f"Catalog file does not exist: {path}")
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise CatalogError(f"Invalid catalog YAML in {path}: {exc}") from exc

    catalogs = parse_catalogs(data)
    logger.info(
        "Loaded catalogs v%s: %d products, %d courses, %d lifestyle categories",
        catalogs.version,
        len(catalogs.products),
        len(catalogs.courses),
        len(catalogs.lifestyle),
    )
    return catalogs


@lru_cache(maxsize=1)
def default_catalogs() -> Catalogs:
    """Return the bundled clinic catalogs (loaded once per process)."""
    return load_catalogs(DEFAULT_CATALOG_PATH)
