from ducky.core.models import ActionPolicy

POLICY_ALIASES = {
    "none": ActionPolicy.NONE,
    "delete": ActionPolicy.DELETE,
    "hardlink": ActionPolicy.HARDLINK,
}

POLICY_CHOICES = list(POLICY_ALIASES.keys())

MIN_QUICK_BYTES = 1024
MAX_QUICK_BYTES = 1024 * 1024 * 1024

QUICK_BYTES_HELP_TEXT = (
    "Quick-hash sample size: only the first N bytes are compared before\n"
    "a full hash is computed. Clamped to [1KB, 1GB]. Default: 64KB"
)

YES_HELP_TEXT = (
    "Confirm --delete/--hardlink. Without it nothing is modified and the\n"
    "planned actions are only reported"
)

EPILOG_TEXT = """
Examples:
  Summary of duplicates under two directories
  %(prog)s ~/Pictures /mnt/backup/Pictures

  List every group, only jpg/png files of at least 256KB
  %(prog)s ~/Pictures --ext jpg,png --min-size 256KB

  Machine-readable output with phase timings
  %(prog)s ~/Downloads --summary-json --timings

  Preview, then replace duplicates with hard links to the first path of each group
  %(prog)s ~/Downloads --hardlink
  %(prog)s ~/Downloads --hardlink --yes

  Move duplicates to the system trash instead of deleting them
  %(prog)s ~/Downloads --delete --trash --yes
"""
