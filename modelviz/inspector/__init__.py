"""Model reflection and instance graph expansion.

Public re-exports so callers can write::

    from modelviz.inspector import build_schema, inspect_instance, expand_relation
"""

from modelviz.inspector.expander import expand_relation
from modelviz.inspector.instance import inspect_instance
from modelviz.inspector.records import list_records
from modelviz.inspector.schema import build_schema, list_model_names

__all__ = [
    "build_schema",
    "expand_relation",
    "inspect_instance",
    "list_model_names",
    "list_records",
]
