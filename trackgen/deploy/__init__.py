from trackgen.deploy.playlists import assign_to_playlists
from trackgen.deploy.reconciler import (
    Reconciler,
    derive_duration,
    extract_fingerprint,
    http_download,
)

__all__ = [
    "Reconciler",
    "assign_to_playlists",
    "derive_duration",
    "extract_fingerprint",
    "http_download",
]
