"""Multi-tenant LMS API."""
