"""BBS Admin module: manage stored credentials and global settings."""
