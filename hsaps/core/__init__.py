"""HSAPS core platform: persistence, auth, roles, notifications, settings, storage, integrations."""
