from trackgen.media.storage import LocalMediaStorage, MediaStorage

__all__ = ["LocalMediaStorage", "MediaStorage"]
