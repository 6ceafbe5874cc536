"""Code shared by the API and the sync worker."""
