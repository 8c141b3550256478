"""
Error classes for CashFlowLab.

This module defines the exception raised when a domain snapshot cannot be
turned into simulation input. The simulation engine itself never raises for
data problems; it degrades to fallbacks and alerts instead.
"""


class ConfigError(Exception):
    """
    Configuration error while building or loading a domain snapshot.

    This exception is raised when a snapshot record is structurally broken:
    a date that cannot be parsed, an unknown frequency or day-selection mode
    or a missing identifier.

    **Common Causes:**
    - Dates that are not ISO formatted (``YYYY-MM-DD``)
    - Frequencies outside Monthly/Quarterly/SemiAnnually/Annually/OneTime
    - Records without an ``id``

    **Example Usage:**
        ```python
        from cashflowlab.core.errors import ConfigError
        from cashflowlab.core.records import Snapshot

        try:
            snapshot = Snapshot.from_dict({"entities": [{"name": "No id"}]})
        except ConfigError as e:
            print(f"Configuration error: {e}")
        ```

    **When to Use:**
    - In record parsing (``from_dict`` constructors)
    - In snapshot loading from JSON/YAML files
    - When an unknown expander kind is resolved
    """

    pass
