"""
Domain constants used across services/routers.
"""

# Pseudo-category slugs understood by the catalog listing
CATALOG_ALL_SLUG = "all"
CATALOG_FEATURED_SLUG = "featured"

# Storefront home page section sizes
HOME_FEATURED_LIMIT = 8
HOME_NEW_ARRIVALS_LIMIT = 8
HOME_CATEGORIES_LIMIT = 6

# Admin overview
RECENT_ORDERS_LIMIT = 5

# Proof of payment: images or PDF receipts
PROOF_ALLOWED_EXTENSIONS = {"jpg", "jpeg", "png", "gif", "webp", "heic", "pdf"}
PROOF_PDF_CONTENT_TYPE = "application/pdf"
