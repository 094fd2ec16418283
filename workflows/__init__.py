"""Workflow layer for Drive Sentinel.

Contains the approval workflow's state machine and its two storage-side
steps:
- Markers: the workflow state stored on each document
- Scanner: classify new inbox documents and request approval
- Commit: rename and move a document once approved
"""

from .markers import Marker, MarkerState, parse_marker, format_marker
from .naming import sanitize_filename, name_stem, build_final_name
from .notifier import RelayClient, NotifyError
from .scanner import (
    Scanner,
    ScanReport,
    Outcome,
    review_category,
    create_scanner,
)
from .commit import (
    CommitHandler,
    CommitFailure,
    InvalidRequest,
    create_commit_handler,
)


__all__ = [
    # Markers
    'Marker',
    'MarkerState',
    'parse_marker',
    'format_marker',

    # Naming
    'sanitize_filename',
    'name_stem',
    'build_final_name',

    # Scanner
    'RelayClient',
    'NotifyError',
    'Scanner',
    'ScanReport',
    'Outcome',
    'review_category',
    'create_scanner',

    # Commit
    'CommitHandler',
    'CommitFailure',
    'InvalidRequest',
    'create_commit_handler',
]
