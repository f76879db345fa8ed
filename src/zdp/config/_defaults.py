"""Values used for any key no configuration layer sets."""

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {  # pyright: ignore[reportExplicitAny]
    "logging": {
        "level": "info",
        "format": "json",
        "file": "",
    },
    "corpus": {
        "index_file": "00-index.md",
        "default_state": "draft",
        "number_width": 4,
        "document_suffix": ".md",
        "states": [
            {"name": "draft", "directory": "01-draft"},
            {"name": "under review", "directory": "02-under-review"},
            {"name": "revised", "directory": "03-revised"},
            {"name": "accepted", "directory": "04-accepted"},
            {"name": "active", "directory": "05-active"},
            {"name": "final", "directory": "06-final"},
            {"name": "deferred", "directory": "07-deferred"},
            {"name": "rejected", "directory": "08-rejected"},
            {"name": "withdrawn", "directory": "09-withdrawn"},
            {"name": "superseded", "directory": "10-superseded"},
        ],
    },
}
