"""Multi-tenant account, role and permission API with a cache-aside read path."""
