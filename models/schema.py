# Centralized collection names to prevent drift.

COL_SYSTEM = "system"
DOC_HEALTHZ = "healthz"  # system/healthz, read-only connectivity probe target

COL_PRODUCTS = "products"  # products/{auto_id}, looked up by field productId
COL_SUBSCRIPTIONS = "subscriptions"  # subscriptions/{s_<sha256(email, productId)>}

# Subscription document fields
F_EMAIL = "email"
F_PRODUCT_ID = "productId"
F_TELEGRAM_USERNAME = "telegramUsername"
F_IS_ACTIVE = "isActive"
F_CREATED_AT = "createdAt"
F_UPDATED_AT = "updatedAt"
