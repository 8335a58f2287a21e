"""Event type constants.

Learn: Centralizing event names as constants prevents typos and makes
it easy to discover every event the hub can push. The names are the
wire names existing clients listen for, which is why the update event
reads "ReceiveProductUpdate" rather than "ProductUpdated".
"""

PRODUCT_ADDED = "ProductAdded"
PRODUCT_UPDATED = "ReceiveProductUpdate"
PRODUCT_DELETED = "ProductDeleted"

PRODUCT_EVENTS = (PRODUCT_ADDED, PRODUCT_UPDATED, PRODUCT_DELETED)

# ─── Remote calls a connected session may invoke ────────

# Each one rebroadcasts the matching event to every session.
HUB_METHODS = {
    "NotifyProductAdded": PRODUCT_ADDED,
    "SendProductUpdate": PRODUCT_UPDATED,
    "NotifyProductDeleted": PRODUCT_DELETED,
}
