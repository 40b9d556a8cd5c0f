"""
Canvas layout engine: position detection, intent resolution, tree mutation
and row invariant maintenance.
"""

from .intents import reject, reject_message, resolve_drop  # noqa: F401
from .mutator import (  # noqa: F401
    MutationOutcome,
    NodeLocation,
    append_to_row,
    create_row,
    duplicate_component,
    find_node,
    group_into_row,
    insert_adjacent,
    insert_at,
    insert_into_row,
    locate,
    remove_node_by_id,
    replace_node,
    update_component,
)
from .position import detect_intent, indicator_bounds  # noqa: F401
from .rows import (  # noqa: F401
    TreeInvariantError,
    cleanup_rows,
    collect_ids,
    row_state,
    rows_needing_cleanup,
    validate_tree,
)
from .transaction import apply_command  # noqa: F401
