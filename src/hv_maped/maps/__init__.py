"""
Maps package.

Brushes, the document aggregate, props and the JSON exporter. The
`MapService` facade lives in `hv_maped.maps.service` and is imported from
there, it depends on the codec which itself depends on these models.
"""

from .models import Brush, Document, IdAllocator
from .props import Prop
from .exporter import EXPORT_FORMAT_VERSION, export_entities, write_export

__all__ = [
    "Brush",
    "Document",
    "IdAllocator",
    "Prop",
    "EXPORT_FORMAT_VERSION",
    "export_entities",
    "write_export",
]
