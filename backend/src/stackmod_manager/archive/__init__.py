from stackmod_manager.archive.handler import (
    ArchiveEntry,
    ArchiveHandler,
    ExtractionError,
    RarHandler,
    SevenZipHandler,
    ZipHandler,
    open_archive,
)

__all__ = [
    "ArchiveEntry",
    "ArchiveHandler",
    "ExtractionError",
    "RarHandler",
    "SevenZipHandler",
    "ZipHandler",
    "open_archive",
]
