"""
Base class for the records built from loosely-typed 3DCart payloads.
"""

import logging
from typing import Dict, Any


logger = logging.getLogger(__name__)


class BaseRecord:
    """Wraps a raw payload dict and offers tolerant accessors over it."""

    def __init__(self, data: Dict[str, Any]):
        self._data = dict(data or {})

    @property
    def raw_data(self) -> Dict[str, Any]:
        """The payload this record was built from."""
        return self._data

    def safe_get(
        self,
        key: str,
        default: Any = None
    ) -> Any:
        """
        Get a value from the payload, treating None as missing.

        Args:
            key: Key to look up
            default: Default value if key not found

        Returns:
            Value or default
        """
        value = self._data.get(key)
        return default if value is None else value

    def first_of(self, *keys: str, default: Any = '') -> Any:
        """Value of the first key present (not None) in the payload."""
        for key in keys:
            value = self._data.get(key)
            if value is not None:
                return value
        return default

    def get_float(self, key: str, default: float = 0.0) -> float:
        """
        Numeric payload value.

        Unparseable values fall back to the default - validation reports them.
        """
        value = self._data.get(key)
        if value is None or value == '':
            return default
        try:
            return float(value)
        except (TypeError, ValueError):
            logger.debug(f"Non-numeric value for {key}: {value!r}")
            return default
