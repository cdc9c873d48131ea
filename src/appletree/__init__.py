"""appletree: data access for school records (validation, repository, pagination)."""
