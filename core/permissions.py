# ============================================
# CENTRALIZED ROLE → PERMISSIONS MAP
# ============================================
#
# Role-level grants only. Whether a grant applies to a given request is
# decided by core.permission_helpers (property/unit scope, creator, assignee).
#
ROLE_PERMISSIONS = {

    # =====================================================
    # ADMIN: unrestricted
    # =====================================================
    "admin": ["*"],

    # =====================================================
    # LANDLORD: owned properties only
    # =====================================================
    "landlord": [
        "requests:create", "requests:read",
        "requests:advance", "requests:verify", "requests:reopen", "requests:archive",
        "requests:assign",
        "requests:edit", "requests:manage_media",
        "requests:cancel",
        "requests:manage_public_link",
        "requests:comment",
    ],

    # =====================================================
    # PROPERTY MANAGER: managed properties only
    # =====================================================
    "propertymanager": [
        "requests:create", "requests:read",
        "requests:advance", "requests:verify", "requests:reopen", "requests:archive",
        "requests:assign",
        "requests:edit", "requests:manage_media",
        "requests:cancel",
        "requests:manage_public_link",
        "requests:comment",
    ],

    # =====================================================
    # TENANT: leased units only
    #   edit / media / cancel / feedback are creator-only
    # =====================================================
    "tenant": [
        "requests:create", "requests:read",
        "requests:edit", "requests:manage_media",
        "requests:cancel",
        "requests:feedback",
        "requests:comment",
    ],

    # =====================================================
    # VENDOR: only what it is assigned to
    # =====================================================
    "vendor": [
        "requests:read",
        "requests:comment",
    ],
}
