# core/constants.py

# --- Admin Log Actions (Standard Registry) ---

# Users
ADMIN_USER_VERIFY = "USER_VERIFY"
ADMIN_USER_ADMIN_TOGGLE = "USER_ADMIN_TOGGLE"
ADMIN_USER_ROLE_UPDATE = "USER_ROLE_UPDATE"
ADMIN_USER_PASSWORD_RESET = "USER_PASSWORD_RESET"
ADMIN_USER_DELETE = "USER_DELETE"
ADMIN_USER_BULK_VERIFY = "USER_BULK_VERIFY"
ADMIN_USER_BULK_ADMIN = "USER_BULK_ADMIN"
ADMIN_USER_BULK_DELETE = "USER_BULK_DELETE"

# Content
ADMIN_IDEA_DELETE = "IDEA_DELETE"

# Resources
ADMIN_RESOURCE_APPROVE = "RESOURCE_APPROVE"
ADMIN_RESOURCE_REJECT = "RESOURCE_REJECT"
ADMIN_RESOURCE_UPDATE = "RESOURCE_UPDATE"
ADMIN_RESOURCE_DELETE = "RESOURCE_DELETE"
ADMIN_RESOURCE_BULK_DELETE = "RESOURCE_BULK_DELETE"

# Updates
ADMIN_UPDATE_CREATE = "UPDATE_CREATE"
ADMIN_UPDATE_EDIT = "UPDATE_EDIT"
ADMIN_UPDATE_DELETE = "UPDATE_DELETE"
ADMIN_UPDATE_NOTIFY = "UPDATE_NOTIFY"

# Settings
ADMIN_SOCIAL_CONFIG_UPDATE = "SOCIAL_CONFIG_UPDATE"

# Target types
TARGET_USER = "User"
TARGET_TEAM = "Team"
TARGET_IDEA = "Idea"
TARGET_RESOURCE = "Resource"
TARGET_UPDATE = "Update"
TARGET_CONFIG = "AdminConfig"
