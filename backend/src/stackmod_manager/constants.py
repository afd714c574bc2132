# Suffix of the sibling directory that holds a mount target's original contents.
MOUNT_BACKUP_SUFFIX = "~"

# Wrapper folder names that are stripped when an archive nests its payload.
DATA_FOLDER_NAME = "Data"
FOMOD_FOLDER_NAME = "fomod"

SUPPORTED_ARCHIVE_EXTENSIONS = {".zip", ".7z", ".rar"}
