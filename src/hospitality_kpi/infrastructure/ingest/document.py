"""
Source documents handed from file adapters to the document processor.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class SourceDocument:
    """
    One uploaded document in adapter-neutral form.

    Free-text sources fill ``text`` and ``tables``; tabular exports fill
    ``rows`` with Department/Metric/Value/Unit/Date mappings instead.
    """

    text: str = ""
    tables: List[List[List[str]]] = field(default_factory=list)
    source_type: str = "pdf"
    rows: Optional[List[Dict[str, Any]]] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_tabular(self) -> bool:
        return self.rows is not None
