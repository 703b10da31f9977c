"""Services: the release pipeline and its adapters."""
