"""pyotcs - A python library to read and write OpenText Content Server categories."""

from .exceptions import BusinessPropertiesError, OTCSError, ToolCallError
from .otcs import OTCS
from .settings import OTCSSettings

__all__ = ["OTCS", "BusinessPropertiesError", "OTCSError", "OTCSSettings", "ToolCallError"]
