import logging
import sqlite3
from abc import ABC, abstractmethod
from typing import Optional, Sequence, TypeVar, Union

from jewel_pricing.db import get_metal_type, get_stone_type, list_metal_types, list_stone_types
from jewel_pricing.models import Identifier, MetalType, StoneType

logger = logging.getLogger(__name__)

Material = TypeVar("Material", MetalType, StoneType)


class MaterialCatalog(ABC):
    """Looks up material prices. A miss returns None; unknown identifiers never raise."""

    @abstractmethod
    def get_metal_price_modifier(self, id_or_name: Identifier) -> Optional[float]:
        """Returns the metal's price as a percentage of 24K gold (91 means 91%)."""
        raise NotImplementedError

    @abstractmethod
    def get_stone_price_per_carat(self, id_or_name: Identifier) -> Optional[float]:
        """Returns the stone's price per carat in INR."""
        raise NotImplementedError


def parse_identifier(id_or_name: Identifier) -> Union[int, str, None]:
    """Numeric strings become integer IDs; other strings are treated as names."""
    if isinstance(id_or_name, bool):
        return None
    if isinstance(id_or_name, int):
        return id_or_name
    text = str(id_or_name).strip()
    if not text:
        return None
    if text.isdigit():
        return int(text)
    return text


def match_by_name(name: str, materials: Sequence[Material]) -> Optional[Material]:
    """Case-insensitive exact match first.

    Then catalog names contained in the query (longest wins), and only then
    catalog names that contain the query (lowest display_order wins).
    """
    wanted = name.strip().lower()
    if not wanted:
        return None

    for material in materials:
        if material.name.strip().lower() == wanted:
            return material

    named = [material for material in materials if material.name.strip()]

    contained = [material for material in named if material.name.strip().lower() in wanted]
    if contained:
        return max(contained, key=lambda material: len(material.name.strip()))

    containing = [material for material in named if wanted in material.name.strip().lower()]
    if containing:
        return min(containing, key=lambda material: (material.display_order, material.id or 0))
    return None


class SQLiteMaterialCatalog(MaterialCatalog):
    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def find_metal_type(self, id_or_name: Identifier) -> Optional[MetalType]:
        key = parse_identifier(id_or_name)
        if key is None:
            return None
        if isinstance(key, int):
            return get_metal_type(self.conn, key)
        return match_by_name(key, list_metal_types(self.conn))

    def find_stone_type(self, id_or_name: Identifier) -> Optional[StoneType]:
        key = parse_identifier(id_or_name)
        if key is None:
            return None
        if isinstance(key, int):
            return get_stone_type(self.conn, key)
        return match_by_name(key, list_stone_types(self.conn))

    def get_metal_price_modifier(self, id_or_name: Identifier) -> Optional[float]:
        metal = self.find_metal_type(id_or_name)
        if metal is None or not metal.price_modifier:
            logger.debug("Metal catalog miss for %r", id_or_name)
            return None
        return metal.price_modifier

    def get_stone_price_per_carat(self, id_or_name: Identifier) -> Optional[float]:
        stone = self.find_stone_type(id_or_name)
        if stone is None or not stone.price_modifier:
            logger.debug("Stone catalog miss for %r", id_or_name)
            return None
        return stone.price_modifier
