"""Version information for discussion-mirror.

Single source of truth for version number.
Follows PEP 440 and semantic versioning principles.
"""

__version__ = "1.3.0"
__version_info__ = tuple(int(part) for part in __version__.split("."))

# Version history:
# 1.3.0 - Local read path for list/widget/block, run lock, schedule-derived cadence
# 1.2.0 - Redirect to GitHub, settings query preview
# 1.0.0 - Initial release
